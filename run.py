import argparse
import asyncio

import uvicorn

from src.duty_admin.utils.database import create_all


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument('command', choices=['serve', 'init-db'])
    parser.add_argument('--host', default='127.0.0.1')
    parser.add_argument('--port', type=int, default=8000)
    parser.add_argument('--reload', action='store_true')
    args = parser.parse_args()
    if args.command == 'init-db':
        asyncio.run(create_all())
        print('Tables created')
    elif args.command == 'serve':
        uvicorn.run('src.duty_admin.app:app', host=args.host, port=args.port, reload=args.reload)

if __name__ == '__main__':
    main()
