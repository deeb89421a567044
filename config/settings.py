"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Google Sheets
    google_sheets_api_key: str = ""
    google_sheet_id: str = ""
    sales_range: str = "VENDAS!A:J"
    history_range: str = "HVENDAS!A:K"
    demo_loans_range: str = "DEMONS_COMODATOS!A:I"
    leads_range: str = "LEADS!A:K"
    http_timeout_seconds: float = 30.0

    # Logging
    log_level: str = "INFO"

    # Expense CSV exports
    general_expenses_csv: str = "data/DADOS - DESP_GERAL.csv"
    fuel_expenses_csv: str = "data/DADOS - DESP_COMBUSTIVEL.csv"

    # Access control
    access_policy_file: str = "config/access_policy.json"
    users_file: str = "config/users.json"
    jwt_secret: str = "change-me"
    jwt_expiry_hours: int = 72

    # Analysis
    pareto_threshold: float = 80.0  # cumulative % closing the TOP bucket
    chart_limit: int = 20
    chart_label_length: int = 15
    inactivity_days: int = 90
    previous_year: int = 2024
    current_year: int = 2025


settings = Settings()
