import sys
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from chathub.settings import settings


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Ensure a consistent test environment.

	Socket tests authenticate with a bare `userId` auth payload, which is only
	accepted in dev mode.
	"""
	original_env = settings.environment
	original_secret = settings.secret_key
	original_metrics_public = settings.obs_metrics_public
	original_admin_token = settings.obs_admin_token
	settings.environment = "dev"
	settings.secret_key = "test-secret-key-with-enough-length-for-hs256"
	try:
		yield
	finally:
		settings.environment = original_env
		settings.secret_key = original_secret
		settings.obs_metrics_public = original_metrics_public
		settings.obs_admin_token = original_admin_token


@pytest_asyncio.fixture
async def api_client():
	from chathub.main import app

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
