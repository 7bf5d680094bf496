"""
Initialise une base vide : premier compte admin + forfaits par défaut.
Usage : ADMIN_EMAIL=... ADMIN_PASSWORD=... python seed_data.py
"""
import asyncio
import uuid
from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorClient

from config import settings
from core.security import hash_password

DEFAULT_PACKAGES = [
    {
        "name":          "Airport Special",
        "description":   "Luxury transfer to and from LAX and greater Los Angeles airports (SNA, LGB, ONT).",
        "base_price":    250.0,
        "is_hourly":     False,
        "minimum_hours": None,
        "image_url":     "/plane.png",
        "airports":      ["LAX", "SNA", "LGB", "ONT"],
    },
    {
        "name":          "Disneyland Park & Hotel / Airports",
        "description":   "Transportation to Disneyland Park, Disney Resort hotels and Southern California airports.",
        "base_price":    250.0,
        "is_hourly":     False,
        "minimum_hours": None,
        "image_url":     "/disneyland.png",
        "airports":      [],
    },
    {
        "name":          "Special Events",
        "description":   "Weddings, proms, corporate events, concerts and more. Hourly service.",
        "base_price":    130.0,
        "is_hourly":     True,
        "minimum_hours": 4,
        "image_url":     "/weddings.png",
        "airports":      [],
    },
]


async def seed():
    print(f"🔌 Connexion à MongoDB : {settings.DB_NAME}")
    client = AsyncIOMotorClient(settings.MONGO_URL)
    db = client[settings.DB_NAME]
    now = datetime.now(timezone.utc)

    print("\n---------- COMPTE ADMIN ------------")
    email = settings.ADMIN_EMAIL.strip().lower()
    if await db.users.find_one({"email": email}):
        print(f"⏩ ADMIN ({email}) existe déjà.")
    elif not settings.ADMIN_PASSWORD:
        print("⚠️  ADMIN_PASSWORD non défini : compte admin non créé.")
    else:
        await db.users.insert_one({
            "user_id":       f"usr_{uuid.uuid4().hex[:12]}",
            "email":         email,
            "password_hash": hash_password(settings.ADMIN_PASSWORD),
            "first_name":    "Admin",
            "last_name":     "User",
            "role":          "admin",
            "is_active":     True,
            "created_at":    now,
            "updated_at":    now,
        })
        print(f"✅ Créé : ADMIN -> {email}")

    print("\n---------- FORFAITS ------------")
    for pkg in DEFAULT_PACKAGES:
        if await db.service_packages.find_one({"name": pkg["name"]}):
            print(f"⏩ {pkg['name']} existe déjà.")
            continue
        await db.service_packages.insert_one({
            "package_id": f"pkg_{uuid.uuid4().hex[:12]}",
            **pkg,
            "vehicle_id": None,
            "is_active":  True,
            "created_at": now,
            "updated_at": now,
        })
        suffix = "/hr" if pkg["is_hourly"] else ""
        print(f"✅ Créé : {pkg['name']} - ${pkg['base_price']:.0f}{suffix}")

    print("\n-------------------------------------------")
    print("🚀 TERMINÉ !")
    client.close()


if __name__ == "__main__":
    asyncio.run(seed())
