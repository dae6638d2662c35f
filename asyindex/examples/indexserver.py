"""
Directory index server.

Serves directory listings (HTML, JSON or plain text depending on the Accept
header) for a directory tree and, unless disabled, the files themselves.
"""

import os
import sys
import locale
import asyncio
import logging

from asyindex import logger
from asyindex._version import __version__
from asyindex.index import IndexOptions, ServeIndex
from asyindex.index.options import VIEWS
from asyindex.handlers.static import StaticFileHandler
from asyindex.unicomm.common.target import UniTarget, UniProto
from asyindex.unicomm.common.unissl import UniSSL
from asyindex.unicomm.protocol.server.http.chain import HandlerChain
from asyindex.unicomm.protocol.server.http.httpserver import HTTPServer, HTTPServerHandler


def build_chain(options:IndexOptions, static:bool = True):
    chain = HandlerChain()
    chain.use(ServeIndex(options))
    if static is True:
        chain.use(StaticFileHandler(options.root))
    return chain

async def run_index_server_from_target(target:UniTarget, options:IndexOptions, static:bool = True, log_callback=None):
    """
    Run the index server on an already configured target.

    Args:
        target (UniTarget): where to listen
        options (IndexOptions): listing configuration
        static (bool): serve regular files as well
        log_callback: async function receiving server debug messages

    Returns:
        tuple: (True, None) when the server stopped, (None, exception) on failure
    """
    try:
        chain = build_chain(options, static)
        handler_factory = lambda: HTTPServerHandler(chain, log_callback=log_callback)
        server = HTTPServer(handler_factory, target, log_callback=log_callback)
        return await server.serve()
    except Exception as e:
        return None, e

async def run_index_server(directory:str, host:str = '127.0.0.1', port:int = 8080, debug:bool = False,
                           ssl:bool = False, certfile:str = None, keyfile:str = None, static:bool = True, **kwargs):
    """
    Run the index server.

    Args:
        directory (str): directory to list
        host (str): host to bind to
        port (int): port to bind to
        debug (bool): print server debug messages
        ssl (bool): serve over TLS, with a self-signed certificate unless certfile is set
        certfile (str): TLS certificate
        keyfile (str): TLS key
        static (bool): serve regular files as well
        kwargs: passed to IndexOptions (hidden, filter, icons, stylesheet, template, view, concurrency)
    """
    try:
        log_callback = None
        if debug:
            async def log_callback(msg):
                print(f"[INDEX-SERVER] {msg}")

        protocol = UniProto.SERVER_TCP
        ssl_ctx = None
        if ssl is True or certfile is not None:
            protocol = UniProto.SERVER_SSL_TCP
            if certfile is not None:
                ssl_ctx = UniSSL(certfile, keyfile)
            else:
                ssl_ctx = UniSSL.get_selfsigned(host)

        options = IndexOptions(directory, **kwargs)
        target = UniTarget(host, port, protocol, ssl_ctx=ssl_ctx)
        scheme = 'https' if protocol == UniProto.SERVER_SSL_TCP else 'http'
        print(f"Starting index server on {scheme}://{host}:{port}")
        print(f"Listing: {options.root_path}")
        return await run_index_server_from_target(target, options, static=static, log_callback=log_callback)
    except Exception as e:
        return None, e


def main():
    """
    Main entry point for the index server.
    """
    import argparse

    parser = argparse.ArgumentParser(
        description='Asyindex Server - directory listings over HTTP',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  %(prog)s /srv/files                         # List /srv/files on 127.0.0.1:8080
  %(prog)s /srv/files --host 0.0.0.0 -p 9000  # Bind to all interfaces on port 9000
  %(prog)s /srv/files --icons --view details  # Detailed view with file icons
  %(prog)s /srv/files --ssl                   # HTTPS with a self-signed certificate
  %(prog)s /srv/files --url "https://0.0.0.0:8443/?cert=c.pem&key=k.pem"
        ''')

    parser.add_argument('directory', help='Directory to list')
    parser.add_argument('--host', '-H', default='127.0.0.1', help='Host to bind to (default: 127.0.0.1)')
    parser.add_argument('--port', '-p', type=int, default=8080, help='Port to bind to (default: 8080)')
    parser.add_argument('--url', help='Listener URL, overrides host/port/TLS settings. ' + UniTarget.get_help())
    parser.add_argument('--hidden', action='store_true', help='List hidden (dot) files')
    parser.add_argument('--icons', action='store_true', help='Display file type icons')
    parser.add_argument('--view', choices=VIEWS, default='tiles', help='Listing layout (default: tiles)')
    parser.add_argument('--stylesheet', help='CSS file to embed instead of the built-in one')
    parser.add_argument('--template', help='HTML template to use instead of the built-in one')
    parser.add_argument('--concurrency', type=int, default=10, help='Parallel stat calls per listing (default: 10)')
    parser.add_argument('--no-static', action='store_true', help='Only serve listings, not the files themselves')
    parser.add_argument('--ssl', action='store_true', help='Serve over HTTPS')
    parser.add_argument('--certfile', help='TLS certificate (PEM). Self-signed if omitted with --ssl')
    parser.add_argument('--keyfile', help='TLS private key (PEM)')
    parser.add_argument('--debug', '-d', action='store_true', help='Enable debug logging')
    parser.add_argument('--verbose', '-v', action='count', default=0, help='Increase log verbosity')
    parser.add_argument('--version', action='version', version='Asyindex Server %s' % __version__)

    args = parser.parse_args()

    # listings sort by the collation order of the user's locale
    try:
        locale.setlocale(locale.LC_COLLATE, '')
    except locale.Error as e:
        logger.warning('Could not set the collation locale: %s' % e)

    if not os.path.exists(args.directory):
        print(f"Error: Directory '{args.directory}' does not exist")
        sys.exit(1)
    if not os.path.isdir(args.directory):
        print(f"Error: '{args.directory}' is not a directory")
        sys.exit(1)
    if args.port < 1 or args.port > 65535:
        print(f"Error: Port must be between 1 and 65535, got {args.port}")
        sys.exit(1)
    if args.concurrency < 1:
        print(f"Error: concurrency must be at least 1, got {args.concurrency}")
        sys.exit(1)

    if args.debug or args.verbose > 0:
        logger.setLevel(logging.DEBUG)

    index_kwargs = {
        'hidden' : args.hidden,
        'icons' : args.icons,
        'view' : args.view,
        'stylesheet' : args.stylesheet,
        'template' : args.template,
        'concurrency' : args.concurrency,
    }

    try:
        if args.url is not None:
            target = UniTarget.from_url(args.url)
            options = IndexOptions(args.directory, **index_kwargs)
            print(f"Starting index server on {args.url}")
            print(f"Listing: {options.root_path}")
            coro = run_index_server_from_target(target, options, static=not args.no_static)
        else:
            coro = run_index_server(
                args.directory,
                args.host,
                args.port,
                args.debug,
                ssl=args.ssl,
                certfile=args.certfile,
                keyfile=args.keyfile,
                static=not args.no_static,
                **index_kwargs
            )
        _, err = asyncio.run(coro)
        if err is not None:
            raise err
    except KeyboardInterrupt:
        print("\nServer stopped by user")
    except Exception as e:
        print(f"Failed to start server: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
