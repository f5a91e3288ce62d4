# earthinsights/utils/http.py
import httpx
from typing import Optional

async def get_json(url: str, params: Optional[dict] = None, headers: Optional[dict] = None, timeout: float = 30.0):
    async with httpx.AsyncClient(timeout=timeout) as client:
        r = await client.get(url, params=params, headers=headers)
        r.raise_for_status()
        return r.json()

async def post_json(url: str, payload: dict, params: Optional[dict] = None, headers: Optional[dict] = None, timeout: float = 30.0):
    async with httpx.AsyncClient(timeout=timeout) as client:
        r = await client.post(url, json=payload, params=params, headers=headers)
        r.raise_for_status()
        return r.json()

async def head(url: str, headers: Optional[dict] = None, timeout: float = 5.0):
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        r = await client.head(url, headers=headers)
        return {"status_code": r.status_code, "headers": dict(r.headers)}
