#!/usr/bin/env python3
"""Run a PR review locally.

Reads the same INPUT_* variables as the action, from the environment or a
.env file, e.g. INPUT_OWNER, INPUT_REPO, INPUT_PR_NUMBER, INPUT_TOKEN.
"""
import asyncio
from dotenv import load_dotenv

load_dotenv()

from ai_review.config import Settings
from ai_review.main import run_action


async def main():
    result = await run_action(Settings())
    print(f"Review result: {result}")

if __name__ == "__main__":
    asyncio.run(main())
