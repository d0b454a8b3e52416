"""
Script de lancement du serveur HTTP (uvicorn).

Hôte et port proviennent des paramètres (`APP_HOST`, `APP_PORT`); `PORT` dans l'environnement
prend le pas sur `APP_PORT` (plateformes PaaS).
"""

import os

import uvicorn

from cms.app.main import app
from cms.core.container import container


def main():
    """Lance l'application FastAPI sans rechargement automatique."""
    port = int(os.environ.get("PORT", container.settings.APP_PORT))
    uvicorn.run(app, host=container.settings.APP_HOST, port=port, reload=False)


if __name__ == "__main__":
    main()
