"""
Relevance-ranked multi-keyword search statements.

The search text is split into keywords, and every keyword is matched against
every column as one scored term:

    case-sensitive hit      2 points
    case-insensitive hit    1 point     (one mode per statement)
    no hit                  0 points

The terms are summed into a computed ``relevance`` column. Only rows with
``relevance > 1`` are returned, best first. With the default case-insensitive
mode a row therefore needs at least two keyword/column hits; a single
case-sensitive hit is enough on its own.

Both the projection and the WHERE clause spell out every term, so the bind
parameters are the keyword patterns supplied twice, in the same order.
"""
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from typing import Any

from dbwrap.exceptions import ValidationError
from dbwrap.sql import validate_identifier
from dbwrap.strategy import DatabaseStrategy, get_strategy

logger = logging.getLogger(__name__)

__all__ = ['SearchOptions', 'build_search', 'split_keywords']

_NON_ALNUM = re.compile(r'[^a-zA-Z0-9]')

# Spellings accepted for option keys, mapped to field names
_OPTION_ALIASES = {
    'casesensitive': 'case_sensitive',
    'caseSensitive': 'case_sensitive',
    'stripChars': 'strip_chars',
    'searchMinLen': 'search_min_len',
    }


@dataclass
class SearchOptions:
    """Search options

    - delimiter: string the search text is split on (default: space)
    - limit: maximum rows returned, 0 for no limit (default: 0)
    - offset: rows skipped, only applied together with a limit (default: 0)
    - case_sensitive: score exact-case hits at 2 instead of folded hits at 1
    - strip_chars: remove every non-alphanumeric character from keywords
    - search_min_len: accepted for compatibility, not enforced
    """
    delimiter: str = ' '
    limit: int = 0
    offset: int = 0
    case_sensitive: bool = False
    strip_chars: bool = True
    search_min_len: int = 0

    def __post_init__(self):
        self.delimiter = self.delimiter or ' '
        try:
            self.limit = max(int(self.limit or 0), 0)
            self.offset = max(int(self.offset or 0), 0)
            self.search_min_len = int(self.search_min_len or 0)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f'Invalid search pagination option: {exc}') from exc
        self.case_sensitive = bool(self.case_sensitive)
        self.strip_chars = bool(self.strip_chars)

    @classmethod
    def from_value(cls, options: 'SearchOptions | Mapping[str, Any] | None') -> 'SearchOptions':
        """Build options from None, an instance, or a mapping of option keys.
        """
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in options.items():
            name = _OPTION_ALIASES.get(key, key)
            if name not in known:
                raise ValidationError(f'Unknown search option: {key!r}')
            kwargs[name] = value
        return cls(**kwargs)


def split_keywords(text: str, options: SearchOptions) -> list[str]:
    """Split search text into keywords, stripping them if requested.

    >>> split_keywords('phone-x case!', SearchOptions())
    ['phonex', 'case']
    """
    keywords = text.split(options.delimiter)
    if options.strip_chars:
        keywords = [_NON_ALNUM.sub('', keyword) for keyword in keywords]
    return keywords


def build_search(table: str, text: str, columns: Iterable[str] = ('name',),
                 options: SearchOptions | Mapping[str, Any] | None = None,
                 dialect: str | DatabaseStrategy = 'mysql') -> tuple[str, list[str]]:
    """Build a relevance-ranked search statement and its parameters.

    Args:
        table: Table to search, validated before use
        text: Search text, split into keywords
        columns: Columns every keyword is matched against, validated before use
        options: SearchOptions or a mapping of option keys
        dialect: Dialect name or strategy the statement is written for

    Returns
        (template, parameters) ready for QueryExecutor.execute

    Raises
        InvalidIdentifier: If the table or any column name is invalid
        ValidationError: If no columns are given or an option is malformed
    """
    strategy = dialect if isinstance(dialect, DatabaseStrategy) else get_strategy(dialect)
    table = validate_identifier(table, 'table')
    if isinstance(columns, str):
        columns = [columns]
    columns = [validate_identifier(column, 'column') for column in columns]
    if not columns:
        raise ValidationError('Search requires at least one column.')

    opts = SearchOptions.from_value(options)
    if opts.search_min_len:
        logger.debug(f'search_min_len={opts.search_min_len} is accepted but not enforced')

    terms = []
    params = []
    for keyword in split_keywords(text, opts):
        for column in columns:
            quoted = strategy.quote_identifier(column)
            terms.append(strategy.match_term(quoted, opts.case_sensitive))
            params.append(strategy.match_pattern(keyword, opts.case_sensitive))

    relevance = ' + '.join(terms)
    matched = ' OR '.join(f'{term} > 0' for term in terms)
    sql = (f'SELECT * FROM (SELECT *, ({relevance}) AS relevance '
           f'FROM {strategy.quote_identifier(table)} WHERE {matched}) AS scored '
           f'WHERE relevance > 1 ORDER BY relevance DESC')
    if opts.limit > 0:
        sql += f' LIMIT {opts.limit}'
        if opts.offset > 0:
            sql += f' OFFSET {opts.offset}'

    logger.debug(f'Search on {table} built {len(terms)} terms over {len(columns)} columns')
    return sql, params + params


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
