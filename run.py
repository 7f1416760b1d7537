#!/usr/bin/env python3
"""
Скрипт запуска сервиса
"""
import sys
import argparse
import uvicorn
import logging
import config

logger = logging.getLogger(__name__)

def run_dev_server(host=None, port=None):
    """Запуск сервера разработки"""
    host = host or config.HOST
    port = port or config.PORT

    logger.info(f"Starting development server на {host}:{port}, документация: {config.get_api_url('docs')}")
    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level="debug"
    )

def prod_server_options(host=None, port=None) -> dict:
    """
    Параметры uvicorn для продакшн режима.
    Сессии гадания хранятся в памяти процесса, поэтому воркер всегда один.
    """
    return {
        "host": host or config.HOST,
        "port": port or config.PORT,
        "workers": 1,
        "log_level": "info",
        "ssl_certfile": config.SSL_CERT_PATH,
        "ssl_keyfile": config.SSL_KEY_PATH,
    }

def run_prod_server(host=None, port=None):
    """Запуск продакшн сервера"""
    options = prod_server_options(host, port)
    logger.info(f"Starting production server на {options['host']}:{options['port']}")
    uvicorn.run("main:app", **options)

if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(f"{config.LOG_DIR}/app.log")
        ]
    )
    try:
        parser = argparse.ArgumentParser(description="Запуск сервера I Ching Oracle API")
        parser.add_argument("--prod", action="store_true", help="Запустить в production режиме")
        parser.add_argument("--host", type=str, help="Хост для запуска сервера")
        parser.add_argument("--port", type=int, help="Порт для запуска сервера")
        args = parser.parse_args()

        if args.prod or config.PROD_MODE:
            run_prod_server(args.host, args.port)
        else:
            run_dev_server(args.host, args.port)
    except Exception as e:
        logger.error(f"Error starting server: {e}")
        sys.exit(1)
