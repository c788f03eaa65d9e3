# Crit Shared Supabase Client
# All database reads/writes go through the Supabase REST (PostgREST) API

import httpx

from .config import SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY, HTTP_TIMEOUT


class StoreError(Exception):
    """A read or write against Supabase failed.

    The message is the backend's own error text where one was returned.
    """


def _error_message(response):
    try:
        body = response.json()
    except ValueError:
        return response.text or f'HTTP {response.status_code}'
    if isinstance(body, dict):
        return body.get('message') or body.get('msg') or body.get('error') or str(body)
    return str(body)


def _filter_params(filters):
    """Turn {'column': value} into PostgREST equality filters"""
    params = {}
    for column, value in (filters or {}).items():
        if value is None:
            params[column] = 'is.null'
        elif isinstance(value, bool):
            params[column] = f"eq.{'true' if value else 'false'}"
        else:
            params[column] = f'eq.{value}'
    return params


class SupabaseStore:
    """Table access over the Supabase REST API using the service role key.

    Filters are plain column equality, which is all the services need.
    """

    def __init__(self, url=SUPABASE_URL, service_key=SUPABASE_SERVICE_ROLE_KEY, timeout=HTTP_TIMEOUT):
        self.url = url.rstrip('/')
        self.service_key = service_key
        self.timeout = timeout

    def _get_headers(self, prefer=None):
        """Get standard Supabase headers"""
        headers = {
            'apikey': self.service_key or '',
            'Authorization': f'Bearer {self.service_key}',
            'Content-Type': 'application/json'
        }
        if prefer:
            headers['Prefer'] = prefer
        return headers

    def _table_url(self, table):
        return f'{self.url}/rest/v1/{table}'

    def _send(self, method, table, params=None, json=None, prefer=None):
        try:
            response = httpx.request(
                method,
                self._table_url(table),
                headers=self._get_headers(prefer),
                params=params,
                json=json,
                timeout=self.timeout
            )
        except httpx.HTTPError as e:
            print(f"Error calling Supabase ({method} {table}): {e}")
            raise StoreError(str(e)) from e

        if response.status_code >= 400:
            message = _error_message(response)
            print(f"Supabase {method} {table} failed ({response.status_code}): {message}")
            raise StoreError(message)

        if not response.content:
            return []
        return response.json()

    # ===================
    # READ OPERATIONS
    # ===================

    def select(self, table, filters=None, order=None, desc=False, limit=None, columns='*'):
        """Return all rows matching `filters`, optionally ordered and limited."""
        params = _filter_params(filters)
        params['select'] = columns
        if order:
            params['order'] = f"{order}.{'desc' if desc else 'asc'}"
        if limit:
            params['limit'] = str(limit)
        return self._send('GET', table, params=params)

    def select_one(self, table, filters=None, order=None, desc=False):
        """Return the first matching row or None."""
        rows = self.select(table, filters, order=order, desc=desc, limit=1)
        return rows[0] if rows else None

    # ===================
    # WRITE OPERATIONS
    # ===================

    def insert(self, table, row):
        """Insert one row and return it as stored."""
        rows = self._send('POST', table, json=row, prefer='return=representation')
        return rows[0] if rows else row

    def update(self, table, filters, values):
        """Update matching rows and return them."""
        return self._send(
            'PATCH', table,
            params=_filter_params(filters),
            json=values,
            prefer='return=representation'
        )

    def upsert(self, table, row, on_conflict):
        """Insert or fully replace the row identified by the `on_conflict` columns."""
        rows = self._send(
            'POST', table,
            params={'on_conflict': on_conflict},
            json=row,
            prefer='resolution=merge-duplicates,return=representation'
        )
        return rows[0] if rows else row

    def delete(self, table, filters):
        """Delete matching rows."""
        return self._send('DELETE', table, params=_filter_params(filters), prefer='return=representation')

    # ===================
    # AUTH
    # ===================

    def get_user(self, access_token):
        """Resolve a user access token to the Supabase user, or None if invalid."""
        if not access_token:
            return None
        try:
            response = httpx.get(
                f'{self.url}/auth/v1/user',
                headers={
                    'apikey': self.service_key or '',
                    'Authorization': f'Bearer {access_token}'
                },
                timeout=self.timeout
            )
        except httpx.HTTPError as e:
            print(f"Error verifying user token: {e}")
            return None

        if response.status_code != 200:
            return None
        user = response.json()
        return user if user.get('id') else None
