"""
World Chat GIF API - thin HTTP layer over the GIF search proxy.

GET /api/gifs?query=<text> returns the provider JSON verbatim. An empty query
returns trending GIFs. Provider failures surface as 500 {"error": ...} through
the UpstreamProxyError handler registered in main.py.
"""

import logging

from fastapi import APIRouter, Query, Request

from services.gif_proxy import GifProxy

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get("/gifs")
async def search_gifs(request: Request, query: str = Query("", max_length=200)):
    """Search GIFs (or list trending ones when query is empty)."""
    gif_proxy: GifProxy = request.app.state.gif_proxy
    return await gif_proxy.search(query)
