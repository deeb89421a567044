"""Shared dependencies for API routers."""

import base64
import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass, replace
from functools import lru_cache
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Optional

import bcrypt
from fastapi import Depends, Header, HTTPException, Request

from commercial_intel.analytics.access_policy import (
    AccessPolicy,
    Identity,
    OverrideTable,
    Role,
    can_access,
    effective_filters,
    rep_options,
    resolve_policy,
    scoped_records,
)
from commercial_intel.analytics.filters import FilterCriteria, extract_unique
from commercial_intel.analytics.records import (
    DemoLoanRecord,
    ExpenseRecord,
    LeadRecord,
    TransactionRecord,
)
from commercial_intel.ingestion.csv_loader import load_fuel_expenses, load_general_expenses
from commercial_intel.ingestion.row_normalizer import attach_customer_types
from commercial_intel.ingestion.sheets_client import SheetsClient, SheetsError
from config.settings import settings

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"

# Filterable fields per dataset; anything else in the query string is ignored.
SALES_FIELDS = ("client", "city", "state", "category", "rep", "region", "customer_type")
HISTORY_FIELDS = SALES_FIELDS
DEMO_LOAN_FIELDS = ("client", "category", "rep", "city", "state", "region")
LEAD_FIELDS = ("rep", "status", "state", "product", "team", "company")
EXPENSE_FIELDS = ("rep", "region", "city", "category")


class UserDirectoryError(Exception):
    """The user directory file is missing or malformed."""


# ---------------------------------------------------------------------------
# Password Hashing
# ---------------------------------------------------------------------------


def hash_password(password: str) -> str:
    """Hash password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify password against a bcrypt hash; malformed hashes never verify."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


# ---------------------------------------------------------------------------
# JWT Token Management
# ---------------------------------------------------------------------------


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


def _sign(message: str) -> str:
    return hmac.new(settings.jwt_secret.encode(), message.encode(), hashlib.sha256).hexdigest()


def create_jwt(identity: Identity) -> str:
    """Create a signed token carrying the caller's identity."""
    header = _b64(json.dumps({"alg": JWT_ALGORITHM, "typ": "JWT"}).encode())
    now = int(time.time())
    payload = _b64(json.dumps({
        "sub": identity.username,
        "role": identity.role.value,
        "name": identity.display_name,
        "rep": identity.rep_name,
        "iat": now,
        "exp": now + settings.jwt_expiry_hours * 3600,
    }).encode())
    return f"{header}.{payload}.{_sign(f'{header}.{payload}')}"


def decode_jwt(token: str) -> Optional[dict]:
    """Decode and verify a token; None when invalid or expired."""
    parts = token.split(".")
    if len(parts) != 3:
        return None
    header, payload, signature = parts
    if not hmac.compare_digest(signature.encode(), _sign(f"{header}.{payload}").encode()):
        return None
    try:
        data = json.loads(base64.urlsafe_b64decode(payload + "=" * (-len(payload) % 4)))
    except ValueError:
        return None
    if not isinstance(data, dict) or data.get("exp", 0) < int(time.time()):
        return None
    return data


def identity_from_claims(claims: dict) -> Optional[Identity]:
    try:
        role = Role.parse(claims.get("role", ""))
    except ValueError:
        return None
    return Identity(
        role=role,
        username=claims.get("sub", ""),
        display_name=claims.get("name"),
        rep_name=claims.get("rep"),
    )


# ---------------------------------------------------------------------------
# User directory
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DirectoryUser:
    username: str
    password_hash: str
    role: Role
    display_name: Optional[str] = None
    rep_name: Optional[str] = None

    def identity(self) -> Identity:
        return Identity(self.role, self.username, self.display_name, self.rep_name)


def load_user_directory(path: str) -> dict[str, DirectoryUser]:
    """Users keyed by lowercase username.

    Raises:
        UserDirectoryError: when the file cannot be read or an entry is invalid.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        users = {}
        for entry in data.get("users", []):
            user = DirectoryUser(
                username=entry["username"],
                password_hash=entry["password_hash"],
                role=Role.parse(entry["role"]),
                display_name=entry.get("display_name"),
                rep_name=entry.get("rep_name"),
            )
            users[user.username.lower()] = user
    except (OSError, ValueError, KeyError, AttributeError) as exc:
        raise UserDirectoryError(f"Cannot load user directory {path}: {exc}") from exc
    logger.info("Loaded %d users from %s", len(users), path)
    return users


def get_user_directory() -> dict[str, DirectoryUser]:
    try:
        return load_user_directory(settings.users_file)
    except UserDirectoryError:
        logger.exception("User directory unavailable")
        raise HTTPException(status_code=503, detail="User directory unavailable")


def authenticate(directory: dict[str, DirectoryUser], username: str, password: str) -> Optional[Identity]:
    user = directory.get(username.strip().lower())
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user.identity()


# ---------------------------------------------------------------------------
# FastAPI Dependencies: identity
# ---------------------------------------------------------------------------


async def get_identity(authorization: str = Header(default="")) -> Identity:
    """The caller's identity from the Bearer token; 401 without a valid one."""
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Authentication required")
    claims = decode_jwt(authorization[7:])
    identity = identity_from_claims(claims) if claims else None
    if identity is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    return identity


def require_page(page: str):
    """Dependency that checks the caller's role may open *page*."""

    async def check(identity: Identity = Depends(get_identity)) -> Identity:
        if not can_access(identity, page):
            raise HTTPException(
                status_code=403,
                detail=f"Role '{identity.role.value}' cannot access '{page}'.",
            )
        return identity

    return check


@lru_cache(maxsize=1)
def _cached_override_table(path: str) -> OverrideTable:
    if not Path(path).exists():
        logger.warning("Access policy file %s not found, using built-in defaults", path)
        return OverrideTable()
    return OverrideTable.load(path)


def get_override_table() -> OverrideTable:
    return _cached_override_table(settings.access_policy_file)


def policy_for(
    identity: Identity,
    table: OverrideTable,
    records: Iterable,
    fields: Iterable[str],
) -> AccessPolicy:
    """Resolve the caller's policy against the region labels in *records*."""
    vocabulary = extract_unique(records, "region")
    return resolve_policy(identity, table, vocabulary).for_fields(fields)


# ---------------------------------------------------------------------------
# FastAPI Dependencies: filters
# ---------------------------------------------------------------------------


def parse_filters(request: Request, fields: Iterable[str]) -> FilterCriteria:
    """Repeated query parameters → FilterCriteria, restricted to *fields*.

    ``?region=North&region=South&start=2025-01-01`` → region ∈ {North, South}.
    """
    allowed = set(fields) | {"start", "end"}
    raw: dict[str, list[str]] = {}
    for key, value in request.query_params.multi_items():
        if key in allowed:
            raw.setdefault(key, []).append(value)
    return FilterCriteria.from_raw(raw)


def filters_for(fields: Iterable[str]) -> Callable[[Request], FilterCriteria]:
    fields = tuple(fields)

    def dependency(request: Request) -> FilterCriteria:
        return parse_filters(request, fields)

    return dependency


# ---------------------------------------------------------------------------
# FastAPI Dependencies: datasets
# ---------------------------------------------------------------------------


def get_sheets_client() -> SheetsClient:
    try:
        return SheetsClient(
            api_key=settings.google_sheets_api_key,
            sheet_id=settings.google_sheet_id,
            timeout=settings.http_timeout_seconds,
            ranges={
                "sales": settings.sales_range,
                "history": settings.history_range,
                "demo_loans": settings.demo_loans_range,
                "leads": settings.leads_range,
            },
        )
    except SheetsError as exc:
        logger.exception("Sheets client misconfigured")
        raise HTTPException(status_code=502, detail=str(exc))


async def _fetch(name: str, loader: Callable[[], Awaitable[list]]) -> list:
    try:
        return await loader()
    except SheetsError as exc:
        logger.exception("Failed to load %s", name)
        raise HTTPException(status_code=502, detail=str(exc))


async def get_sales(client: SheetsClient = Depends(get_sheets_client)) -> list[TransactionRecord]:
    return await _fetch("sales", client.fetch_sales)


async def get_history(client: SheetsClient = Depends(get_sheets_client)) -> list[TransactionRecord]:
    """History rows enriched with each client's customer type from sales."""
    history = await _fetch("history", client.fetch_history)
    sales = await _fetch("sales", client.fetch_sales)
    return attach_customer_types(history, sales)


async def get_demo_loans(client: SheetsClient = Depends(get_sheets_client)) -> list[DemoLoanRecord]:
    return await _fetch("demo_loans", client.fetch_demo_loans)


async def get_leads(client: SheetsClient = Depends(get_sheets_client)) -> list[LeadRecord]:
    return await _fetch("leads", client.fetch_leads)


def get_expenses() -> tuple[list[ExpenseRecord], list[ExpenseRecord]]:
    """General and fuel expenses from the configured CSV exports."""
    try:
        return (
            load_general_expenses(settings.general_expenses_csv),
            load_fuel_expenses(settings.fuel_expenses_csv),
        )
    except OSError as exc:
        logger.exception("Failed to read expense exports")
        raise HTTPException(status_code=502, detail=f"Expense data unavailable: {exc}")


# ---------------------------------------------------------------------------
# Scoping helpers
# ---------------------------------------------------------------------------


def apply_scope(
    identity: Identity,
    table: OverrideTable,
    records: list,
    fields: Iterable[str],
    criteria: FilterCriteria,
) -> tuple[AccessPolicy, list]:
    """Resolve the caller's policy and return it with the visible records."""
    policy = policy_for(identity, table, records, fields)
    return policy, scoped_records(records, policy, criteria)


def filter_options(records: list, fields: Iterable[str], policy: AccessPolicy) -> dict[str, list[str]]:
    """Choices for each filter field within the caller's locked scope.

    A locked rep field offers only the locked name.
    """
    visible = scoped_records(records, replace(policy, seeds=FilterCriteria()))
    options = {}
    for name in fields:
        values = extract_unique(visible, name)
        options[name] = rep_options(policy, values) if name == "rep" else values
    return options


def scope_payload(policy: AccessPolicy, criteria: FilterCriteria) -> dict:
    return {
        "filters": effective_filters(policy, criteria).to_dict(),
        "locked": sorted(policy.locks.fields),
    }
