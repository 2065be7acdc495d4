"""Package entry point for ``python -m reaction_translator``.

WHY: The service and its keep-alive worker ship as one package. Hosting
platforms start each process with a single command line.

HOW: Checks sys.argv for the ``--keepalive`` flag. If present, runs the
keep-alive worker. Otherwise, starts the webhook server.

RULES:
- ``--keepalive`` runs the worker; it needs WEB_SERVICE_URL
- Without ``--keepalive``, falls through to the server
"""

import sys

if __name__ == "__main__":
    if "--keepalive" in sys.argv:
        from reaction_translator.keepalive import main as keepalive_main
        keepalive_main()
    else:
        from reaction_translator.server.app import run_server
        run_server()
