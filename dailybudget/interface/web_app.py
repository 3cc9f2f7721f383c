"""Mini README: FastAPI application exposing the budgeting API.

Structure:
    * create_application - factory wiring settings, store, accounts, routes.
    * Request models - explicit schemas for every JSON body.
    * current_owner dependency - resolves the bearer token to an owner id.

Routes:
    * POST /signup, POST /login - account management, no token required.
    * POST/GET /config - the caller's budget window.
    * POST/GET /transactions, DELETE /transactions/{id}
    * POST/GET /spendings, DELETE /spendings/{id}
    * GET /daily-allowance/{date} - date as ``DD_MM_YYYY``.

Domain errors are translated into ``HTTPException`` with the matching
status code; unknown JSON fields are rejected by the request models.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Optional

from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ..allowance import allowance_for_owner
from ..auth import AccountRegistry
from ..configuration import DailyBudgetSettings, get_settings
from ..dates import decode_path_date
from ..errors import (
    ConfigMissing,
    DateOutOfRange,
    DuplicateUser,
    InvalidCredentials,
    InvalidToken,
    RecordNotFound,
)
from ..ledger import STORE_BACKENDS, BudgetConfig, LedgerStore
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

USERS_FILE_NAME = "users.json"


class Credentials(BaseModel):
    """Signup/login body; blank fields are reported as a 400."""

    username: Optional[str] = None
    password: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class ConfigPayload(BaseModel):
    start_money: Decimal
    start_date: str = Field(..., description="DD/MM/YYYY or YYYY-MM-DD")
    end_money: Decimal
    end_date: str = Field(..., description="DD/MM/YYYY or YYYY-MM-DD")

    model_config = ConfigDict(extra="forbid")


class TransactionPayload(BaseModel):
    amount: Decimal = Field(..., ge=0)
    is_income: bool = False
    description: Optional[str] = None
    category: Optional[str] = None
    occurred_on: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class SpendingPayload(BaseModel):
    amount: Decimal = Field(..., ge=0)
    date: str = Field(..., description="Day the money was spent, DD/MM/YYYY")
    description: Optional[str] = None
    category: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


def _build_accounts(settings: DailyBudgetSettings) -> AccountRegistry:
    """Create the account registry, refusing to run without a signing secret."""

    if not settings.jwt_secret:
        raise RuntimeError("DAILYBUDGET_JWT_SECRET environment variable is not set!")
    users_path = settings.data_directory / USERS_FILE_NAME if settings.storage_backend == "file" else None
    return AccountRegistry(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expiry_minutes=settings.token_expiry_minutes,
        path=users_path,
    )


def create_application(
    settings: Optional[DailyBudgetSettings] = None,
    store: Optional[LedgerStore] = None,
    accounts: Optional[AccountRegistry] = None,
) -> FastAPI:
    """Create the FastAPI application with routes and dependencies."""

    settings = settings or get_settings()
    accounts = accounts or _build_accounts(settings)
    store = store or STORE_BACKENDS.create(settings.storage_backend, settings)

    app = FastAPI(title="Daily Budget API", version="0.1.0")
    LOGGER.info(
        "Budget API configured for %s with '%s' ledger store",
        settings.environment,
        store.backend_name,
    )

    async def current_owner(authorization: Optional[str] = Header(None)) -> str:
        """Resolve ``Authorization: Bearer <token>`` to the owner identity."""

        parts = (authorization or "").split(" ")
        token = parts[1] if len(parts) > 1 else ""
        if not token:
            raise HTTPException(status_code=401, detail="Token missing")
        try:
            return accounts.verify_token(token)
        except InvalidToken as error:
            LOGGER.warning("Rejected request with invalid token: %s", error)
            raise HTTPException(status_code=401, detail="Invalid token") from error

    @app.post("/signup")
    def signup(credentials: Credentials) -> JSONResponse:
        """Register a new user."""

        try:
            accounts.signup(credentials.username or "", credentials.password or "")
        except DuplicateUser as error:
            raise HTTPException(status_code=409, detail="User already exists") from error
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        return JSONResponse({"message": "User created"}, status_code=201)

    @app.post("/login")
    def login(credentials: Credentials) -> JSONResponse:
        """Exchange username and password for an access token."""

        try:
            token = accounts.login(credentials.username or "", credentials.password or "")
        except InvalidCredentials as error:
            raise HTTPException(status_code=401, detail="Invalid username or password") from error
        return JSONResponse({"token": token})

    @app.post("/config")
    async def save_config(payload: ConfigPayload, owner: str = Depends(current_owner)) -> JSONResponse:
        """Create or replace the caller's budget window."""

        try:
            config = BudgetConfig.from_fields(payload.model_dump())
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        store.upsert_config(owner, config)
        return JSONResponse({"message": "Config saved"})

    @app.get("/config")
    async def read_config(owner: str = Depends(current_owner)) -> JSONResponse:
        config = store.get_config(owner)
        if config is None:
            raise HTTPException(status_code=404, detail="Config not found")
        return JSONResponse(config.as_dict())

    @app.post("/transactions")
    async def add_transaction(payload: TransactionPayload, owner: str = Depends(current_owner)) -> JSONResponse:
        """Record an income or expense for the whole budget period."""

        try:
            transaction_id = store.add_transaction(owner, payload.model_dump(exclude_none=True))
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        return JSONResponse({"id": transaction_id}, status_code=201)

    @app.get("/transactions")
    async def list_transactions(owner: str = Depends(current_owner)) -> JSONResponse:
        return JSONResponse([record.as_dict() for record in store.list_transactions(owner)])

    @app.delete("/transactions/{transaction_id}")
    async def delete_transaction(transaction_id: str, owner: str = Depends(current_owner)) -> JSONResponse:
        try:
            store.delete_transaction(owner, transaction_id)
        except RecordNotFound as error:
            raise HTTPException(status_code=404, detail="Transaction not found") from error
        return JSONResponse({"message": "Transaction deleted"})

    @app.post("/spendings")
    async def add_spending(payload: SpendingPayload, owner: str = Depends(current_owner)) -> JSONResponse:
        """Record money spent on a given day."""

        try:
            spending_id = store.add_spending(owner, payload.model_dump(exclude_none=True))
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        return JSONResponse({"id": spending_id}, status_code=201)

    @app.get("/spendings")
    async def list_spendings(owner: str = Depends(current_owner)) -> JSONResponse:
        return JSONResponse([record.as_dict() for record in store.list_spendings(owner)])

    @app.delete("/spendings/{spending_id}")
    async def delete_spending(spending_id: str, owner: str = Depends(current_owner)) -> JSONResponse:
        try:
            store.delete_spending(owner, spending_id)
        except RecordNotFound as error:
            raise HTTPException(status_code=404, detail="Spending not found") from error
        return JSONResponse({"message": "Spending deleted"})

    @app.get("/daily-allowance/{date_text}")
    async def daily_allowance(date_text: str, owner: str = Depends(current_owner)) -> JSONResponse:
        """Return the per-day allowance for a ``DD_MM_YYYY`` date."""

        try:
            query_date = decode_path_date(date_text)
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        try:
            allowance = allowance_for_owner(store, owner, query_date)
        except ConfigMissing as error:
            raise HTTPException(status_code=400, detail="Config not set") from error
        except DateOutOfRange as error:
            raise HTTPException(status_code=400, detail="Date is out of bounds") from error
        LOGGER.info("Daily allowance for owner %s on %s: %s", owner, date_text, allowance)
        return JSONResponse({"dailyAllowance": float(allowance)})

    return app
