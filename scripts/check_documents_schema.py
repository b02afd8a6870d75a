"""Report whether documents.file_name exists and how many rows still lack it."""
import asyncio
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from sqlalchemy import func, inspect, select

from velai.db.session import AsyncSessionLocal, engine
from velai.models.document import Document


async def check() -> int:
    async with AsyncSessionLocal() as db:
        conn = await db.connection()
        columns = await conn.run_sync(
            lambda sync_conn: [col["name"] for col in inspect(sync_conn).get_columns("documents")]
        )
        total = (await db.execute(select(func.count()).select_from(Document.__table__))).scalar()

        print(f"documents: {total} rows, columns: {', '.join(columns)}")
        if "file_name" not in columns:
            print("❌ file_name column missing - run `alembic upgrade head`")
            return 1

        missing = (
            await db.execute(
                select(func.count()).select_from(Document.__table__).where(Document.__table__.c.file_name.is_(None))
            )
        ).scalar()
        print(f"✅ file_name column present ({missing} rows without a stored name)")
    return 0


async def main() -> int:
    try:
        return await check()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
