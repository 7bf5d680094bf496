"""
Router pricing : devis public et réglages tarifaires publics.
"""
from fastapi import APIRouter, Depends, Request

from core.limiter import limiter
from models.booking import TripQuoteRequest, QuoteResponse
from models.pricing import PublicSettings
from services.pricing_service import calculate_quote
from services.settings_service import AdminSettingsService, get_settings_service

router = APIRouter()


@router.post("/quote", response_model=QuoteResponse, summary="Calculer un devis (public)")
@limiter.limit("30/minute")
async def get_quote(
    request: Request,
    body: TripQuoteRequest,
    settings_service: AdminSettingsService = Depends(get_settings_service),
):
    policy = await settings_service.get_pricing_policy()
    return await calculate_quote(body, policy)


@router.get("/settings/public", response_model=PublicSettings, summary="Réglages tarifaires (public)")
async def public_settings(
    settings_service: AdminSettingsService = Depends(get_settings_service),
):
    return await settings_service.public_settings()
