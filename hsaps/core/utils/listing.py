"""List request parsing: page number, fixed page size, search term, categorical filters.

Every list endpoint returns a `filters_signature`. A client that sends its
page number together with the signature it received keeps its page while the
filters are unchanged. When the search term or any filter differs, the page
resets to 1.
"""
import hashlib
import json
from dataclasses import dataclass, field
from typing import Dict, Optional

DEFAULT_PAGE_SIZE = 20


@dataclass
class ListQuery:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    search: str = ''
    filters: Dict[str, str] = field(default_factory=dict)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size

    @property
    def signature(self) -> str:
        payload = json.dumps({'search': self.search, 'filters': self.filters},
                             sort_keys=True, ensure_ascii=False)
        return hashlib.md5(payload.encode('utf-8')).hexdigest()[:12]

    @property
    def search_pattern(self) -> Optional[str]:
        return f'%{self.search}%' if self.search else None

    def with_filters(self, search=None, **filters) -> 'ListQuery':
        """Return a copy with changed search/filters; the page resets to 1 on any change."""
        new_search = self.search if search is None else search.strip()
        new_filters = dict(self.filters)
        for key, value in filters.items():
            if value in (None, '', 'All'):
                new_filters.pop(key, None)
            else:
                new_filters[key] = value
        changed = new_search != self.search or new_filters != self.filters
        return ListQuery(
            page=1 if changed else self.page,
            page_size=self.page_size,
            search=new_search,
            filters=new_filters,
        )

    def to_page(self, page) -> 'ListQuery':
        return ListQuery(page=max(1, int(page)), page_size=self.page_size,
                         search=self.search, filters=dict(self.filters))

    def envelope(self, rows, total, key='items') -> dict:
        """Standard list response body."""
        return {
            key: rows,
            'total': total,
            'page': self.page,
            'page_size': self.page_size,
            'total_pages': (total + self.page_size - 1) // self.page_size if total else 0,
            'filters_signature': self.signature,
        }

    @classmethod
    def from_args(cls, args, filter_keys=(), page_size=DEFAULT_PAGE_SIZE) -> 'ListQuery':
        """Build from request args (page, search, sig and the given filter keys)."""
        try:
            page = max(1, int(args.get('page', 1)))
        except (TypeError, ValueError):
            page = 1
        base = cls(page=page, page_size=page_size)
        query = base.with_filters(
            search=args.get('search', ''),
            **{key: args.get(key) for key in filter_keys}
        )
        sent_signature = args.get('sig')
        if sent_signature and sent_signature != query.signature:
            return query.to_page(1)
        return query.to_page(page)


def build_where(query, search_columns=(), filter_columns=None, extra=None):
    """WHERE clause and params for a ListQuery.

    `search_columns` are OR-ed with ILIKE; `filter_columns` maps a filter key
    to its column (or to a callable value -> (sql, params) for translated
    filters). `extra` is a list of (sql, params) conditions always applied.
    Returns (' WHERE ...' or '', params).
    """
    where = []
    params = []
    for sql, extra_params in (extra or []):
        where.append(sql)
        params.extend(extra_params)
    for key, column in (filter_columns or {}).items():
        value = query.filters.get(key)
        if not value:
            continue
        if callable(column):
            sql, filter_params = column(value)
            where.append(sql)
            params.extend(filter_params)
        else:
            where.append(f'{column} = %s')
            params.append(value)
    if query.search and search_columns:
        where.append('(' + ' OR '.join(f'{c} ILIKE %s' for c in search_columns) + ')')
        params.extend([query.search_pattern] * len(search_columns))
    return (f" WHERE {' AND '.join(where)}" if where else ''), params
