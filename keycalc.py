"""
KeyCalc Four-Function Calculator
Main application entry point
"""
import socket

import config
from logging_config import setup_logging


def get_local_ip():
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            # doesn't even have to be reachable
            s.connect(('10.255.255.255', 1))
            IP = s.getsockname()[0]
    except OSError:
        IP = '127.0.0.1'
    return IP


def main():
    setup_logging(config.LOG_LEVEL, config.LOG_FILE)

    from api import app

    ip = get_local_ip()
    print("="*60)
    print(f"{config.APP_NAME} v{config.VERSION}")
    print(f"Access on this PC:    http://localhost:{config.WEB_PORT}/api")
    print(f"Access on your Phone: http://{ip}:{config.WEB_PORT}/api")
    print("="*60)

    app.run(host=config.WEB_HOST, port=config.WEB_PORT, debug=False)


if __name__ == "__main__":
    main()
