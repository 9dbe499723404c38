"""FastAPI web surface over a command :class:`~clibrowse.registry.Registry`.

HTML pages (Jinja2 + htmx) for people and a small JSON API for scripts:

* ``GET /``                      - list of commands, ``?search=`` filters
* ``POST /``                     - list fragment for the live search box
* ``GET /command/{path}``        - one command: help, flags, sub-commands
* ``POST /command/{path}``       - run it from the submitted form
* ``GET /api/commands``          - search as JSON
* ``GET /api/commands/{path}``   - metadata as JSON
* ``POST /api/commands/{path}``  - run with a JSON body
* ``GET /health``

Use with uvicorn's factory mode::

    uvicorn clibrowse.server:create_app --factory
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from fastapi.templating import Jinja2Templates
from starlette.concurrency import run_in_threadpool

from . import __version__, forms
from .click_node import load_factory
from .errors import ClibrowseError
from .logging_config import configure_logging, log_event
from .models import Command, CommandMetadata, ExecutionResult, InvocationRequest
from .registry import Registry
from .settings import AppSettings

TEMPLATES_DIR = Path(__file__).parent / "templates"
COMMAND_PREFIX = "/command"
SUCCESS_MESSAGE = "Command executed successfully"


class BrowserServer:
    """FastAPI server exposing one command tree."""

    def __init__(self, registry: Registry, settings: Optional[AppSettings] = None):
        self.settings = settings or AppSettings()
        self.registry = registry
        self.log = logging.getLogger(__name__)
        self.templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
        self.app = FastAPI(
            title=self.settings.title,
            description="Browse and run a command-line tool from the browser",
            version=__version__,
        )
        self._setup_routes()
        self._setup_exception_handlers()

    def _render(self, request: Request, name: str, **context) -> HTMLResponse:
        context.setdefault("title", self.settings.title)
        context.setdefault("prefix", COMMAND_PREFIX)
        return self.templates.TemplateResponse(request, name, context)

    async def _execute(self, path: str, argv: list[str]) -> ExecutionResult:
        timeout = self.settings.execute_timeout
        if timeout is None:
            return await run_in_threadpool(self.registry.execute, path, argv)
        loop = asyncio.get_running_loop()
        pending = loop.run_in_executor(None, self.registry.execute, path, argv)
        try:
            return await asyncio.wait_for(pending, timeout=timeout)
        except asyncio.TimeoutError:
            # The worker thread keeps running; its result is dropped.
            log_event(self.log, logging.ERROR, "cmd_run_timeout", cmd=path, timeout=timeout)
            raise HTTPException(status_code=504, detail=f"command did not finish within {timeout}s")

    def _setup_routes(self) -> None:
        app = self.app

        @app.get("/", response_class=HTMLResponse)
        async def page_list(request: Request, search: str = ""):
            log_event(self.log, logging.INFO, "page_list", search=search)
            return self._render(
                request,
                "list.html",
                search=search,
                commands=self.registry.search(search),
            )

        @app.post("/", response_class=HTMLResponse)
        async def page_list_body(request: Request):
            form = await request.form()
            search = form.get("search") or ""
            if not isinstance(search, str):
                search = ""
            log_event(self.log, logging.INFO, "page_list_body", search=search)
            return self._render(request, "list_body.html", commands=self.registry.search(search))

        @app.get("/favicon.ico", include_in_schema=False)
        async def favicon():
            return Response(status_code=204)

        @app.get(COMMAND_PREFIX + "/{path:path}", response_class=HTMLResponse)
        async def page_command(request: Request, path: str):
            current = "/" + path
            log_event(self.log, logging.INFO, "page_command", cmd=current)
            meta = self.registry.describe(current)
            return self._render(request, "command.html", command=meta)

        @app.post(COMMAND_PREFIX + "/{path:path}", response_class=HTMLResponse)
        async def page_command_run(request: Request, path: str):
            current = "/" + path
            log_event(self.log, logging.INFO, "page_command_run", cmd=current)
            form = await request.form()
            invocation = forms.from_items(form.multi_items())
            log_event(
                self.log,
                logging.INFO,
                "command_exec",
                cmd=current,
                flags=invocation.flags,
                args=invocation.args,
            )
            result = await self._execute(current, invocation.argv)
            output = result.output
            if not result.ok:
                log_event(
                    self.log,
                    logging.ERROR,
                    "cmd_run_failed",
                    reason=result.error_message,
                    cmd=current,
                    flags=invocation.flags,
                )
            elif output == "":
                output = SUCCESS_MESSAGE
            return self._render(
                request,
                "command_output.html",
                output=output,
                output_error=result.error_message,
            )

        @app.get("/api/commands", response_model=list[Command])
        async def api_search(search: str = ""):
            return self.registry.search(search)

        @app.get("/api/commands/{path:path}", response_model=CommandMetadata)
        async def api_describe(path: str):
            return self.registry.describe("/" + path)

        @app.post("/api/commands/{path:path}")
        async def api_execute(path: str, body: InvocationRequest):
            current = "/" + path
            items = [(forms.ARGS_KEY, a) for a in body.args]
            items += [
                (forms.FLAG_PREFIX + name, value)
                for name, values in body.flags.items()
                for value in values
            ]
            invocation = forms.from_items(items)
            log_event(
                self.log,
                logging.INFO,
                "command_exec",
                cmd=current,
                flags=invocation.flags,
                args=invocation.args,
            )
            result = await self._execute(current, invocation.argv)
            return {
                "path": self.registry.normalize(current),
                "ok": result.ok,
                "output": result.output,
                "error": result.error_message or None,
            }

        @app.get("/health")
        async def health():
            return {"status": "healthy", "version": __version__, "commands": len(self.registry)}

    def _setup_exception_handlers(self) -> None:
        @self.app.middleware("http")
        async def log_requests(request: Request, call_next):
            self.log.debug("Request: %s %s", request.method, request.url.path)
            response = await call_next(request)
            self.log.debug(
                "Response: %s %s -> %s",
                request.method,
                request.url.path,
                response.status_code,
            )
            return response

        @self.app.exception_handler(ClibrowseError)
        async def clibrowse_exc_handler(request: Request, exc: ClibrowseError):
            log_event(
                self.log, logging.INFO, "request_failed", path=request.url.path, reason=exc.message
            )
            if request.url.path.startswith("/api/"):
                return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})
            return PlainTextResponse(exc.message, status_code=exc.status_code)

    async def start(self) -> None:
        """Serve until interrupted."""
        host, port = self.settings.host, self.settings.port
        log_event(self.log, logging.INFO, "server_start", address=f"http://{host}:{port}")
        config = uvicorn.Config(
            self.app,
            host=host,
            port=port,
            log_level=self.settings.log_level.lower(),
            log_config=None,
        )
        server = uvicorn.Server(config)
        await server.serve()
        log_event(self.log, logging.INFO, "server_stop")


def build_server(settings: Optional[AppSettings] = None) -> BrowserServer:
    settings = settings or AppSettings()
    registry = Registry(load_factory(settings.factory))
    return BrowserServer(registry, settings)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create the FastAPI app from ``CLIBROWSE_*`` settings."""
    settings = settings or AppSettings()
    configure_logging(level=settings.log_level, fmt=settings.log_format)
    return build_server(settings).app
