"""
Dev bootstrap script — create a demo project for local development.

Usage:
    python -m scripts.bootstrap_dev [client label]

This will:
  1. Create a project (default label "Demo Kitchen Remodel") under a
     freshly generated token
  2. Post a first status update
  3. Print the token to open in the client portal

Always writes to Postgres through SqlDocumentStore, whatever STORE_BACKEND
says; the in-memory backend would lose the project when this process exits.
"""

import asyncio
import sys

# Ensure the project root is on the path
sys.path.insert(0, ".")

from app.core.database import async_session_factory, engine
from app.schemas.projects import ProjectCreate, StatusUpdateCreate
from app.services.document_store import SqlDocumentStore
from app.services.projects import add_status_update, create_project
from app.services.tokens import get_token_generator


async def main(label: str) -> None:
    generator = get_token_generator()

    async with async_session_factory() as session:
        store = SqlDocumentStore(session)
        project = await create_project(
            store,
            generator,
            ProjectCreate(
                client_label=label,
                description="Seeded by scripts.bootstrap_dev",
                project_type=["Kitchen"],
                payment_code="1234",
            ),
        )
        await add_status_update(
            store,
            project.token,
            StatusUpdateCreate(title="Kickoff", message="Measurements taken."),
        )

    print()
    print("=" * 60)
    print("  Dev Bootstrap Complete")
    print("=" * 60)
    print()
    print(f"  Project:      {project.client_label}")
    print(f"  Access code:  {project.token}")
    print("  Payment PIN:  1234")
    if not generator.is_secure:
        print()
        print("  ⚠  Token generated without a CSPRNG.")
    print("=" * 60)
    print()

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main(" ".join(sys.argv[1:]) or "Demo Kitchen Remodel"))
