"""API key authentication via the x-api-key header."""

import secrets

from fastapi import Security, HTTPException, status
from fastapi.security import APIKeyHeader

from safetrade import config

API_KEY_NAME = "x-api-key"
api_key_header = APIKeyHeader(name=API_KEY_NAME, auto_error=False)


async def verify_api_key(api_key: str = Security(api_key_header)) -> str:
    """Check the x-api-key header against API_KEY. 401 if missing or wrong."""
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing API key. Please provide the '{API_KEY_NAME}' header.",
        )

    if not secrets.compare_digest(api_key.encode("utf-8"), config.API_KEY.encode("utf-8")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key.",
        )

    return api_key
