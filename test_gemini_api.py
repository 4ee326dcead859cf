import os
import asyncio

import pytest
from dotenv import load_dotenv

from gemini_client import GeminiGateway

# Load environment variables from a .env file (if you have one locally)
load_dotenv()

pytestmark = pytest.mark.skipif(
    not os.getenv("GEMINI_API_KEY"),
    reason="GEMINI_API_KEY environment variable is not set.",
)


def test_gemini_connection():
    """Live check that the configured key reaches Gemini through the fallback policy."""
    gateway = GeminiGateway.from_env()
    text = asyncio.run(gateway.generate_with_fallback("Hello, what is your purpose? Answer in one sentence."))
    print("\n--- Gemini API Test Successful ---")
    print(text)
    assert text.strip()


if __name__ == "__main__":
    # export GEMINI_API_KEY='YOUR_KEY_HERE' before running this script
    test_gemini_connection()
