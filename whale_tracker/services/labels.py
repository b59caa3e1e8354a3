"""Known address labels for the ELA mainchain."""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from whale_tracker.services.persistence import upsert_address_label

_EF_NOTE = "Flagged due to suspicious activity patterns consistent with Elastos Foundation operations."

KNOWN_ADDRESSES: list[dict[str, str]] = [
    {"address": "ELANULLXXXXXXXXXXXXXXXXXXXXXYvs3rr", "label": "Burn Address", "category": "burn"},
    {"address": "XVbCTM7vqM1qHKsABSFH4xKN1qbp7ijpWf", "label": "ESC Sidechain Transfer", "category": "sidechain"},
    {"address": "STAKEPooLXXXXXXXXXXXXXXXXXXXpP1PQ2", "label": "Staking Pool", "category": "pool"},
    {"address": "CRASSETSXXXXXXXXXXXXXXXXXXXX2qDX5J", "label": "DAO Assets (Locked)", "category": "dao"},
    {"address": "CREXPENSESXXXXXXXXXXXXXXXXXX4UdT6b", "label": "DAO Expenses (Unlocked)", "category": "dao"},
    {"address": "STAKEREWARDXXXXXXXXXXXXXXXXXFD5SHU", "label": "Staking Rewards Pool", "category": "pool"},
    {"address": "ENqof4f3bvpLLZVXMALUL4b8hDAJHAVxU6", "label": "F2Pool Mining", "category": "pool"},
    {"address": "EPEzY8RqLoHiKB5sXsRLNmMcE6ESqvY6Zq", "label": "F2Pool Mining", "category": "pool"},
    {"address": "EMRKTXN183vwcGbCetvKuUPHMyQScRjx6F", "label": "Antpool Mining", "category": "pool"},
    {"address": "EfZ6oNo4oKgefbuX3t2dVrH9ME2mR4ZZka", "label": "Antpool Mining", "category": "pool"},
    {"address": "XV5cSp1y1PU4xXSQs5oaaLExgHA2xHYjp5", "label": "ECO Chain Transfer", "category": "sidechain"},
    {"address": "XNQWEZ7aqNyJHvav8j8tNo2ZQypuTsWQk6", "label": "PGP Chain Transfer", "category": "sidechain"},
    # Exchanges
    {"address": "EeKGjcERsZvmRYuJSFbrdvyb8MPzKpL3v6", "label": "KuCoin Exchange", "category": "exchange"},
    {"address": "EJyiZrRDhdUtUpkxoLgKmdk8JxKoi1tvHG", "label": "KuCoin Exchange", "category": "exchange"},
    {"address": "EHpQRE4K4e2UhD55ingFc7TETuve13aWbZ", "label": "KuCoin Exchange", "category": "exchange"},
    {"address": "EKk4HeHnLvMpxFiSbjVizcrCB1nVt39Bwe", "label": "Gate.io Exchange", "category": "exchange"},
    {"address": "ETsfuQEcNJbmeT5iPXJxJLc7CtipgaEWZQ", "label": "CoinEX Exchange", "category": "exchange"},
    # Elastos Foundation (potential)
    {
        "address": "8PwL7pYuDS9EHFa2ej6ZLoy95TxeZV8dzJ",
        "label": "Potential EF Address",
        "category": "ef",
        "notes": "Only used for voting in the Term 6 Elastos DAO elections.",
    },
    {"address": "EabAPwWynzzEn8uYyRXGwyvJ4V42CqWuev", "label": "Potential EF Address", "category": "ef", "notes": _EF_NOTE},
    {"address": "EUv3qKaZUmtfhxdQyML7qk7VAko2shAnfV", "label": "Potential EF Address", "category": "ef", "notes": _EF_NOTE},
    # Known whales
    {"address": "EJitWuvoWBjeqju2K4AkgaqPof47V3HcDQ", "label": "Paxen (Whale)", "category": "whale"},
    {"address": "EYL34pvhFrfSkafBrAeXKgFua4CmJmYQos", "label": "Paxen (Whale)", "category": "whale"},
]


async def seed_address_labels(session: AsyncSession) -> int:
    for entry in KNOWN_ADDRESSES:
        await upsert_address_label(
            session,
            address=entry["address"],
            label=entry["label"],
            category=entry.get("category"),
            notes=entry.get("notes"),
        )
    logger.info(f"[LABELS] Seeded {len(KNOWN_ADDRESSES)} address labels")
    return len(KNOWN_ADDRESSES)
