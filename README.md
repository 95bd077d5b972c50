# breachcheck

A small HTTP service that tells you whether an e-mail address appears in a
SQLite database of known data breaches. Addresses are never stored in the
clear: they are trimmed, lower-cased, stripped of null bytes and hashed with
SHA-256, and only the hash is looked up. Lookup results are cached in memory
for fifteen minutes.

## Installing

    pip install .

## Running the server

    breachcheck

Command-line options:

| Option            | Default                               | Meaning                        |
|-------------------|---------------------------------------|--------------------------------|
| `--port`          | `$PORT`, else `8082`                  | Port to listen on (all hosts)  |
| `--db-path`       | `$DB_PATH`, else `/data/email_checker.db` | SQLite database file       |
| `--frontend-dir`  | `../frontend/`                        | Directory of static files      |

The admin endpoints read their credentials from the environment on every
request:

| Variable         | Meaning                               |
|------------------|---------------------------------------|
| `ADMIN_USERNAME` | User name for the `/admin` endpoints  |
| `ADMIN_PASSWORD` | Password for the `/admin` endpoints   |

If either is unset, a request to an `/admin` endpoint fails with a server
error.

On start the database table is created if needed (in WAL mode) and five
sample addresses, such as `test@example.com` and `breached@example.com`, are
recorded as compromised with a breach date thirty days in the past. If the
database cannot be opened the command exits with status 1.

## Endpoints

- `GET /api/health` — `{"status": "healthy", "message": ...}`, the message
  giving the number of compromised entries.
- `POST /api/check-email` — body `{"email": "someone@example.com"}`; answers
  with `email`, `compromised` and a `message` (ending in ` (cached)` when the
  answer came from the cache). Malformed JSON (`Invalid JSON format`), a
  missing address (`Email is required`) or an invalid address
  (`Invalid email format`) give status 400 with an `error` field.
- `GET /admin/status` — service name and version, uptime, database entry
  count, cache size, Python version, thread count, peak memory use, CPU count
  and the caller's address. Protected by HTTP basic authentication.
- `GET /admin/metrics` — request metrics, same authentication.
- Anything else is served from the frontend directory; missing files fall back
  to `index.html`. Paths that would escape the directory, or that name a
  directory, are refused with 403.

Every response carries CORS headers; `OPTIONS` requests are answered at once
with 200. The `Access-Control-Allow-Origin` header echoes an `Origin` of
`http://localhost`, `http://localhost:80` or any `https://…example.com`
address, and is left out for other origins. Without an `Origin`, a `Host`
ending in `.example.com` gives `https://<host>`, and anything else gives `*`.
Non-preflight responses also carry `X-Content-Type-Options`,
`X-Frame-Options`, `X-XSS-Protection` and `Referrer-Policy` headers. Request
paths containing `..`, `//`, `/etc/`, `/proc/` or `/home/` are logged as
suspicious.

Example:

    curl -X POST -H 'Content-Type: application/json' \
         -d '{"email": "test@example.com"}' http://localhost:8082/api/check-email

## Using it as a library

```python
from breachcheck.cache import Cache
from breachcheck.database import EmailService, init_database, seed_database
from breachcheck.server import create_app
from breachcheck.validation import validate_and_hash_email

service = EmailService(init_database("breaches.db"))
seed_database(service)

email_hash = validate_and_hash_email("test@example.com")
print(service.is_email_compromised(email_hash))  # True
print(service.compromised_email_count())         # 5

app = create_app(service, Cache(ttl=900, cleanup_interval=300), "frontend")
```

- `breachcheck.validation`: `is_valid_email`, `sanitize_email`, `hash_email`
  and `validate_and_hash_email`, which raises `InvalidEmailError` (a
  `ValueError`) when the address is not valid.
- `breachcheck.cache.Cache`: `set`, `get` (returns `None` for missing or
  expired keys), `delete`, `remove_expired`, `len()`, and `close` to stop the
  background cleanup thread; it can be used as a context manager. Pass
  `cleanup_interval=None` to run without the thread.
- `breachcheck.database`: `init_database`, `EmailService` with
  `is_email_compromised`, `add_compromised_email` (existing hashes are left
  unchanged) and `compromised_email_count`, and `seed_database`.
- `breachcheck.server`: `create_app`, `main`, and the helpers `get_env`,
  `response_message`, `allowed_origin` and `resolve_static_path`.

## What it does not do

- There is no way to import breach data other than the sample addresses or
  calls to `EmailService.add_compromised_email`.
- `/admin/metrics` does not track requests: it always reports zero requests
  and fixed response times and error rates.
- `/admin/status` reports the database size and cache hit ratio as `N/A`.

## Tests

    pip install ".[test]"
    pytest