"""Initialize database tables"""
import asyncio

from todo_app.config import get_settings
from todo_app.database import engine, create_tables


async def init():
    await create_tables(engine)
    await engine.dispose()
    print(f"Database tables created successfully ({get_settings().DATABASE_URL}).")


if __name__ == "__main__":
    asyncio.run(init())
