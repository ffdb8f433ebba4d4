"""
Run the API server: python -m storefront
"""

import uvicorn

from storefront.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "storefront.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
