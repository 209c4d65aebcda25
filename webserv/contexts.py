"""Configuration contexts: http, server and location blocks."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from webserv.utils import GREEN, RESET

DEFAULT_MAX_BODY_SIZE = 1000000
DEFAULT_INDEX = "index.html"


@dataclass(frozen=True)
class ErrorPage:
    """An ``error_page`` directive: a status code and the page to serve."""

    code: int
    path: str


@dataclass(frozen=True)
class Redirection:
    """A ``return`` directive. A status code of 0 means no redirection."""

    status_code: int = 0
    target: str = ""


def _store_error_page(error_pages: list[ErrorPage], error_page: ErrorPage) -> None:
    for position, existing in enumerate(error_pages):
        if existing.code == error_page.code:
            error_pages[position] = replace(existing, path=error_page.path)
            return
    error_pages.append(error_page)


@dataclass
class LocationContext:
    """A ``location`` block inside a server."""

    location: str = ""
    cgi_exec_paths: dict[str, str] = field(default_factory=dict)
    error_pages: list[ErrorPage] = field(default_factory=list)
    redirection: Redirection = field(default_factory=Redirection)
    allowed_methods: list[str] = field(default_factory=list)
    root_directory: str = ""
    upload_dir: str = ""
    index: str = ""
    alias: str = ""
    auto_index: bool = False

    redirect_is_set: bool = False
    auto_ind_is_set: bool = False
    methods_is_set: bool = False
    upl_dir_is_set: bool = False
    index_is_set: bool = False
    root_is_set: bool = False
    alias_is_set: bool = False
    cgi_info_inherited: bool = True

    def __post_init__(self) -> None:
        self.cgi_exec_paths = dict(self.cgi_exec_paths)

    def set_error_page(self, error_page: ErrorPage) -> None:
        """Add an error page, replacing the path of one with the same code."""
        _store_error_page(self.error_pages, error_page)

    def set_auto_index(self, value: str) -> None:
        """Turn autoindex on for ``"on"`` and off for anything else."""
        self.auto_index = value == "on"

    def set_cgi_info(self, extension: str, exec_path: str) -> None:
        """Map an extension to an interpreter, dropping inherited mappings first."""
        if self.cgi_info_inherited:
            self.clear_cgi_info()
        self.cgi_exec_paths[extension] = exec_path

    def clear_cgi_info(self) -> None:
        """Remove every CGI mapping and stop treating them as inherited."""
        self.cgi_exec_paths.clear()
        self.cgi_info_inherited = False


@dataclass
class ServerContext:
    """A ``server`` block inside the http context."""

    cgi_exec_paths: dict[str, str] = field(default_factory=dict)
    error_pages: list[ErrorPage] = field(default_factory=list)
    locations: list[LocationContext] = field(default_factory=list)
    server_names: list[str] = field(default_factory=list)
    allowed_methods: list[str] = field(default_factory=list)
    ports: list[int] = field(default_factory=list)
    root_directory: str = ""
    upload_dir: str = ""
    index: str = DEFAULT_INDEX
    host: str = ""
    auto_index: bool = False
    max_body_size: int = DEFAULT_MAX_BODY_SIZE
    cgi_read_timeout: int = 0

    srv_names_is_set: bool = False
    auto_ind_is_set: bool = False
    methods_is_set: bool = False
    upl_dir_is_set: bool = False
    index_is_set: bool = False
    port_is_set: bool = False
    root_is_set: bool = False
    host_is_set: bool = False
    cgi_read_timeout_is_set: bool = False
    cgi_info_inherited: bool = True

    def __post_init__(self) -> None:
        self.cgi_exec_paths = dict(self.cgi_exec_paths)

    def set_error_page(self, error_page: ErrorPage) -> None:
        """Add an error page, replacing the path of one with the same code."""
        _store_error_page(self.error_pages, error_page)

    def set_auto_index(self, value: str) -> None:
        """Turn autoindex on for ``"on"`` and off for anything else."""
        self.auto_index = value == "on"

    def set_cgi_info(self, extension: str, exec_path: str) -> None:
        """Map an extension to an interpreter, dropping inherited mappings first."""
        if self.cgi_info_inherited:
            self.clear_cgi_info()
        self.cgi_exec_paths[extension] = exec_path

    def clear_cgi_info(self) -> None:
        """Remove every CGI mapping and stop treating them as inherited."""
        self.cgi_exec_paths.clear()
        self.cgi_info_inherited = False

    def add_location(self, location: str) -> LocationContext:
        """Open a new location that inherits this server's directives."""
        new_location = LocationContext(location=location, cgi_exec_paths=self.cgi_exec_paths)
        for error_page in self.error_pages:
            new_location.set_error_page(error_page)
        new_location.allowed_methods = list(self.allowed_methods)
        new_location.root_directory = self.root_directory
        new_location.upload_dir = self.upload_dir
        new_location.index = self.index
        new_location.set_auto_index("on" if self.auto_index else "off")
        self.locations.append(new_location)
        return new_location

    def latest_location(self) -> LocationContext:
        """Return the location most recently added."""
        if not self.locations:
            raise IndexError("server has no locations")
        return self.locations[-1]

    def format_server_names(self) -> str:
        """Return the server names joined by a coloured comma."""
        return f"{GREEN}, {RESET}".join(self.server_names)


@dataclass
class HttpContext:
    """The top-level ``http`` block: defaults and the list of servers."""

    error_pages: list[ErrorPage] = field(default_factory=list)
    servers: list[ServerContext] = field(default_factory=list)
    cgi_exec_paths: dict[str, str] = field(default_factory=dict)
    max_body_size: int = DEFAULT_MAX_BODY_SIZE
    auto_index: bool = False
    cgi_read_timeout: int = 0

    auto_ind_is_set: bool = False
    max_body_is_set: bool = False
    cgi_read_timeout_is_set: bool = False

    def set_error_page(self, error_page: ErrorPage) -> None:
        """Add an error page, replacing the path of one with the same code."""
        _store_error_page(self.error_pages, error_page)

    def set_auto_index(self, value: str) -> None:
        """Turn autoindex on for ``"on"`` and off for anything else."""
        self.auto_index = value == "on"

    def set_cgi_info(self, extension: str, exec_path: str) -> None:
        """Map an extension to an interpreter for every server opened later."""
        self.cgi_exec_paths[extension] = exec_path

    def add_server(self) -> ServerContext:
        """Open a new server that inherits the http-level directives."""
        new_server = ServerContext(cgi_exec_paths=self.cgi_exec_paths)
        for error_page in self.error_pages:
            new_server.set_error_page(error_page)
        new_server.set_auto_index("on" if self.auto_index else "off")
        new_server.max_body_size = self.max_body_size
        new_server.cgi_read_timeout = self.cgi_read_timeout
        self.servers.append(new_server)
        return new_server

    def latest_server(self) -> ServerContext:
        """Return the server most recently added."""
        if not self.servers:
            raise IndexError("http context has no servers")
        return self.servers[-1]