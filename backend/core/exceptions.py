from typing import Any, Optional

from fastapi import HTTPException, status


def _error(status_code: int, detail: Any, headers: Optional[dict] = None) -> HTTPException:
    return HTTPException(status_code=status_code, detail=detail, headers=headers)


# ── Auth ──────────────────────────────────────────────────────────────────────
def credentials_exception() -> HTTPException:
    return _error(
        status.HTTP_401_UNAUTHORIZED,
        "Invalid credentials or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )


def forbidden_exception(detail: str = "Access denied") -> HTTPException:
    return _error(status.HTTP_403_FORBIDDEN, detail)


# ── Ressources ────────────────────────────────────────────────────────────────
def not_found_exception(resource: str = "Resource") -> HTTPException:
    return _error(status.HTTP_404_NOT_FOUND, f"{resource} not found")


def conflict_exception(detail: str) -> HTTPException:
    return _error(status.HTTP_409_CONFLICT, detail)


def bad_request_exception(detail: str) -> HTTPException:
    return _error(status.HTTP_400_BAD_REQUEST, detail)


# ── Réservations et tarification ──────────────────────────────────────────────
def bookings_disabled_exception() -> HTTPException:
    return _error(
        status.HTTP_403_FORBIDDEN,
        "Bookings are currently disabled. Please try again later or contact us for assistance.",
    )


def invalid_transition_exception(current: str, target: str) -> HTTPException:
    return _error(status.HTTP_400_BAD_REQUEST, f"Cannot move a booking from '{current}' to '{target}'")


def invalid_pricing_policy_exception(errors: list[dict]) -> HTTPException:
    """422 avec la liste des erreurs de validation (loc / msg / type) pour le formulaire admin."""
    return _error(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        {"message": "Invalid pricing policy", "errors": errors},
    )
