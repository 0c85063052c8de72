"""
Seed the demo agent profile ("jane-smith") with its sample custom questions.
Run: python -m scripts.seed_agents (from the project root).
"""
import asyncio
import logging
import os
import sys

# Add parent so we can import from the project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings
from database import close_db, init_db, session_scope
from services.repository import AgentRepository
from utils.logs import setup_logging

logger = logging.getLogger("scripts.seed_agents")


AGENTS_DATA = [
    {
        "name": "Jane Smith",
        "business_name": "Smith Real Estate",
        "email": "jane@smithrealestate.com",
        "phone": "(555) 123-4567",
        "logo": "/placeholder.svg",
        "primary_color": "#1a365d",
        "url_slug": "jane-smith",
        "custom_questions": [
            {
                "question_text": "Do you have any pets?",
                "required": True,
                "type": "radio",
                "options": ["Yes", "No"],
            },
            {
                "question_text": "How long do you plan to stay at this property?",
                "required": False,
                "type": "text",
            },
        ],
    },
]


async def seed():
    await init_db()
    async with session_scope() as session:
        repo = AgentRepository(session)
        for data in AGENTS_DATA:
            if await repo.get_agent_by_slug(data["url_slug"]):
                logger.info("Agent %s already exists, skipping", data["url_slug"])
                continue
            agent = await repo.create_agent(data)
            logger.info("Seeded agent %s (%s)", agent.name, agent.id)
    await close_db()
    logger.info("Seed complete.")


if __name__ == "__main__":
    setup_logging(settings.log_level)
    asyncio.run(seed())
