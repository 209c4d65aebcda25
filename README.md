# webserv

The building blocks of a small nginx-style HTTP/1.x server:

- a parser for the server's configuration file (`http`, `server` and
  `location` blocks with their directives), and
- an incremental parser for HTTP requests: start line, headers, and bodies
  sent with `Content-Length` or chunked transfer encoding. The body parser
  writes `multipart/form-data` file uploads to disk and can pass the body
  on to a file meant as CGI input.

## Configuration files

A configuration has one `http` block that holds one or more `server` blocks.
A `server` block may hold `location` blocks, which come after its other
directives:

```nginx
http {
    client_max_body_size 1000000;
    error_page 404 /errors/404.html;

    server {
        host 127.0.0.1;
        listen 8080 8081;
        server_names example.com www.example.com;
        root /var/www;
        allowed_methods GET POST;

        location /uploads {
            upload_directory /var/www/uploads;
            allowed_methods POST;
        }

        location /old {
            return 301 /new;
        }
    }
}
```

Words are split on whitespace; `;`, `{` and `}` are tokens of their own;
quoted text may hold whitespace; a backslash escapes the next character and
`#` starts a comment.

Directives by block:

- `http`: `server`, `client_max_body_size` (0 to 12500000000),
  `error_page`, `autoindex` (`on`/`off`), `cgi_extention`,
  `cgi_read_timeout` (3 or more seconds)
- `server`: `listen` (ports 1024 to 49151), `host`, `root`,
  `upload_directory`, `index` (default `index.html`), `server_names`,
  `allowed_methods` (`GET`, `POST`, `DELETE`, `HEAD`), `error_page`,
  `autoindex`, `cgi_extention`, `cgi_read_timeout`, `location`
- `location`: `root`, `index`, `alias`, `return` (a code and an optional
  target), `allowed_methods`, `error_page`, `autoindex`, `cgi_extention`

Directives set in an outer block are inherited by blocks opened after them:
error pages, `autoindex`, the body size limit, the CGI read timeout and the
CGI mappings go from `http` to each server; error pages, `autoindex`,
`root`, `index`, `upload_directory`, `allowed_methods` and the CGI mappings
go from a server to its locations. Every server needs a `host`, a `root`
and at least one port in `listen`.

Parsing a file, or text already in memory, gives a
`webserv.contexts.HttpContext`:

```python
from webserv.config_parser import parse_config, parse_config_text
from webserv.config_errors import ConfigError

try:
    http = parse_config("site.conf")
except ConfigError as err:
    print(err)

server = parse_config_text(text, "inline.conf").latest_server()
print(server.ports, server.root_directory)
print(server.format_server_names())
for location in server.locations:
    print(location.location, location.redirection.status_code)
```

Every problem raises `webserv.config_errors.ConfigError` (a `ValueError`).
Errors found in the file name the file and line, in the form
`webserv : "listen" directive is duplicate in site.conf:7`.

The pieces can also be used one at a time: `webserv.tokenizer.tokenize_text`
and `tokenize_file` return the list of `Token`s, and
`webserv.config_parser.ConfigParser(tokens, file_name).parse()` builds the
contexts from them.

## Requests

Requests are parsed as data arrives. Message text is handled as `str`
decoded with latin-1, so each byte is one character. A
`webserv.request.Request` collects the state, and three functions fill it in:

- `webserv.start_line.parse_start_line(request, line)` reads the request
  line (without its CRLF): method, percent-decoded target, query and version.
- `webserv.headers.parse_headers(request, msg)` reads every complete header
  line and returns what is left. Header names are stored upper case with
  `-` turned into `_`. Once the empty line is reached `headers_parsed` is set
  and the text after it is returned.
- `webserv.body.parse_body(request, msg)` reads body data framed by
  `Content-Length` or chunked encoding and returns what follows. When the
  whole body is read, `is_ready` is set.

```python
from webserv.body import parse_body
from webserv.headers import parse_headers
from webserv.request import BadRequest, Request
from webserv.start_line import parse_start_line

with Request(upload_dir="uploads") as request:
    try:
        parse_start_line(request, "POST /upload?x=1 HTTP/1.1")
        rest = parse_headers(
            request, "Host: example.com\r\nContent-Length: 5\r\n\r\nhello"
        )
        rest = parse_body(request, rest)
    except BadRequest as err:
        print(err.status_code)
    print(request.target, request.query, request.is_ready)
```

A malformed request raises `webserv.request.BadRequest`, which carries the
HTTP status code to answer with: 400 for syntax errors, 413 when the body
exceeds `max_body_size`, 500 when an upload file cannot be opened, and 505
for an HTTP version other than 1.0 and 1.1. `Request.store_unparsed` keeps
data that cannot be parsed yet and raises 414 or 431 when more than 8000
characters pile up before the start line or the headers are complete.

Body data goes to one of two places:

- with a multipart `Content-Type` and an `upload_dir`, each part that has a
  `filename` in its `Content-Disposition` is written to
  `upload_dir/<filename>` (slashes in the name become underscores);
- when `is_cgi_request` is set, the body is written to `cgi_content_file`
  (a text or binary stream), which is closed when the body is complete.

Other bodies are read and counted but not kept. `Request.close()` (also
called on leaving a `with` block) closes open files and, when the request
was marked bad, deletes the files uploaded so far.

## What this package does not do

It has no command to run and opens no sockets: it does not listen on the
configured ports, accept connections, route requests to locations, build
responses, serve files, list directories or run CGI programs. It provides
the configuration model and the request parser that such a server is
built on.

## Tests

The tests use pytest and are installed with the `test` extra.