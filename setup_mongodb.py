"""
MongoDB Setup Script
Checks the connection and creates the indexes the analysis queries rely on.
"""
import asyncio
from prospect_radar.repositories import db_manager
from prospect_radar.config import settings


COLLECTIONS = ("contacts", "interactions", "notifications", "profiles")


async def setup_mongodb():
    """Connect, create indexes and list them per collection."""
    print("🔄 Connecting to MongoDB...")
    print(f"   Database: {settings.mongodb_database}")
    print()

    try:
        await db_manager.connect()
        db = db_manager.database

        existing_collections = await db.list_collection_names()
        print(f"📦 Existing collections: {existing_collections or 'None'}")
        print()

        print("🔨 Creating indexes...")
        await db_manager.create_indexes()
        print("✅ Indexes created successfully!")
        print()

        print("📊 Verifying indexes:")
        total = 0
        for name in COLLECTIONS:
            indexes = await db[name].index_information()
            total += len(indexes)
            print(f"   {name}: {len(indexes)} indexes")
            for idx_name in indexes:
                print(f"      - {idx_name}")

        print()
        print(f"🎉 MongoDB setup complete! {total} indexes across {len(COLLECTIONS)} collections")

    except Exception as e:
        print(f"❌ Error: {e}")
        print()
        print("💡 Troubleshooting:")
        print("   1. Check MONGODB_URI in your .env")
        print("   2. Ensure the server is reachable from this host")
        raise

    finally:
        await db_manager.disconnect()
        print("👋 Disconnected from MongoDB")


if __name__ == "__main__":
    asyncio.run(setup_mongodb())
