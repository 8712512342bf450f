import logging

from aiohttp import web

logger = logging.getLogger(__name__)

SERVICE_NAME = "kate-bot"


def create_api_app(manager):
    """Create the aiohttp web application for the health API"""

    async def handle_health(request):
        """Health check endpoint"""
        return web.json_response({
            'status': 'ok',
            'service': SERVICE_NAME,
            'sessions': len(manager),
        })

    app = web.Application()
    app.router.add_get('/health', handle_health)
    return app


async def start_api_server(manager, port):
    """Start the health API; returns the runner so the caller can clean it up"""
    runner = web.AppRunner(create_api_app(manager))
    await runner.setup()
    site = web.TCPSite(runner, '0.0.0.0', port)
    await site.start()
    logger.info("Health API running on port %d", port)
    return runner
