"""
Service des réglages admin : document singleton {key: "admin_settings"}.

Le document est créé une seule fois, au démarrage (initialize()), puis modifié
uniquement par les endpoints admin. Le parcours de réservation ne fait que lire.
"""
import logging
from datetime import datetime, timezone

from pydantic import ValidationError

from core.exceptions import invalid_pricing_policy_exception
from database import db
from models.pricing import PricingPolicy, PricingPolicyUpdate, PublicSettings

logger = logging.getLogger(__name__)

SETTINGS_KEY = "admin_settings"
_SETTINGS_FILTER = {"type": "settings", "key": SETTINGS_KEY}


def _validation_detail(exc: ValidationError) -> list[dict]:
    return [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]


class AdminSettingsService:
    def __init__(self, collection):
        self.collection = collection

    async def initialize(self) -> PricingPolicy:
        """Crée le document avec les valeurs par défaut s'il n'existe pas encore."""
        now = datetime.now(timezone.utc)
        result = await self.collection.update_one(
            _SETTINGS_FILTER,
            {"$setOnInsert": {
                "bookings_enabled": True,
                "pricing":          PricingPolicy().model_dump(exclude={"updated_at"}),
                "created_at":       now,
                "updated_at":       now,
            }},
            upsert=True,
        )
        if result.upserted_id is not None:
            logger.info("Réglages admin initialisés avec la politique tarifaire par défaut")
        return await self.get_pricing_policy()

    async def _load(self) -> dict:
        return await self.collection.find_one(_SETTINGS_FILTER, {"_id": 0}) or {}

    async def get_pricing_policy(self) -> PricingPolicy:
        doc = await self._load()
        stored = doc.get("pricing")
        if stored is None:
            logger.warning("Aucune politique tarifaire en base, valeurs par défaut utilisées")
            return PricingPolicy()
        try:
            return PricingPolicy.model_validate({**stored, "updated_at": doc.get("updated_at")})
        except ValidationError as e:
            logger.warning("Politique tarifaire en base invalide, valeurs par défaut utilisées : %s", e)
            return PricingPolicy()

    async def _save_policy(self, policy: PricingPolicy) -> PricingPolicy:
        now = datetime.now(timezone.utc)
        await self.collection.update_one(
            _SETTINGS_FILTER,
            {
                "$set": {
                    "pricing":    policy.model_dump(exclude={"updated_at"}),
                    "updated_at": now,
                },
                "$setOnInsert": {"bookings_enabled": True, "created_at": now},
            },
            upsert=True,
        )
        return policy.model_copy(update={"updated_at": now})

    async def replace_pricing_policy(self, policy: PricingPolicy) -> PricingPolicy:
        saved = await self._save_policy(policy)
        logger.info("Politique tarifaire remplacée")
        return saved

    async def update_pricing_policy(self, update: PricingPolicyUpdate) -> PricingPolicy:
        """Mise à jour partielle : la politique fusionnée est revalidée en entier avant écriture."""
        changes = update.model_dump(exclude_unset=True)
        current = await self.get_pricing_policy()
        merged = {**current.model_dump(exclude={"updated_at"}), **changes}
        try:
            policy = PricingPolicy.model_validate(merged)
        except ValidationError as e:
            raise invalid_pricing_policy_exception(_validation_detail(e))
        saved = await self._save_policy(policy)
        logger.info("Politique tarifaire mise à jour : %s", ", ".join(sorted(changes)) or "aucun champ")
        return saved

    async def bookings_enabled(self) -> bool:
        doc = await self._load()
        enabled = doc.get("bookings_enabled")
        return True if enabled is None else bool(enabled)

    async def set_bookings_enabled(self, enabled: bool) -> bool:
        now = datetime.now(timezone.utc)
        await self.collection.update_one(
            _SETTINGS_FILTER,
            {
                "$set": {"bookings_enabled": enabled, "updated_at": now},
                "$setOnInsert": {"created_at": now},
            },
            upsert=True,
        )
        logger.info(f"Réservations {'ouvertes' if enabled else 'fermées'}")
        return enabled

    async def public_settings(self) -> PublicSettings:
        policy = await self.get_pricing_policy()
        return PublicSettings(
            **policy.model_dump(),
            bookings_enabled=await self.bookings_enabled(),
        )


def get_settings_service() -> AdminSettingsService:
    """Dépendance FastAPI (surchargée dans les tests)."""
    return AdminSettingsService(db.admin_settings)
