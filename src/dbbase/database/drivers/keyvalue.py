"""Key-value (Redis) driver implementation.

The key-value backend has no tables. Its ``query`` takes a pseudo-command
block: comment and blank lines are dropped, the remaining lines are joined
into one command, and the first word selects a handler from
:data:`COMMANDS`. Handlers are registered with :func:`register_command`
and declare their arity up front, so an unknown or malformed command never
reaches the server.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from dbbase.constants import (
    COMMENT_PREFIXES,
    CONNECT_TIMEOUT,
    DEFAULT_KEYVALUE_DB,
    KEY_SCAN_COUNT,
)
from dbbase.database.drivers.base import BaseDriver, empty_table_details
from dbbase.database.logging import QueryTimer, log_query_execution
from dbbase.database.models import QueryResult
from dbbase.errors import QueryError, UnsupportedCommandError

Handler = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class KeyValueCommand:
    name: str
    handler: Handler
    min_args: int
    max_args: Optional[int]

    def check_arity(self, args: Sequence[str]) -> None:
        too_few = len(args) < self.min_args
        too_many = self.max_args is not None and len(args) > self.max_args
        if too_few or too_many:
            raise QueryError(f"Wrong number of arguments for '{self.name}' command")


COMMANDS: dict[str, KeyValueCommand] = {}


def register_command(name: str, min_args: int = 0, max_args: Optional[int] = None):
    """Register a handler for a pseudo-command.

    The handler receives the client followed by the command's arguments.

    Args:
        name: Command name, matched case-insensitively
        min_args: Minimum number of arguments
        max_args: Maximum number of arguments (``None`` for variadic)
    """

    def decorator(func: Handler) -> Handler:
        COMMANDS[name.lower()] = KeyValueCommand(name.lower(), func, min_args, max_args)
        return func

    return decorator


def parse_command_block(block: str) -> list[str]:
    """Turn a pseudo-command block into tokens.

    Lines whose trimmed form is empty or starts with a comment prefix are
    dropped; the rest are joined with single spaces and split on whitespace.
    """
    lines = [line.strip() for line in block.splitlines()]
    kept = [line for line in lines if line and not line.startswith(COMMENT_PREFIXES)]
    return " ".join(kept).split()


def wrap_result(result: Any) -> list[dict[str, Any]]:
    """Normalize a native reply into ``{value: ...}`` rows."""
    if isinstance(result, (set, frozenset)):
        return [{"value": item} for item in sorted(result, key=str)]
    if isinstance(result, (list, tuple)):
        return [{"value": item} for item in result]
    return [{"value": result}]


# Server and keyspace


@register_command("ping", 0, 1)
async def _ping(client, *args):
    if args:
        return await client.echo(args[0])
    return await client.ping()


@register_command("echo", 1, 1)
async def _echo(client, message):
    return await client.echo(message)


@register_command("info", 0, 1)
async def _info(client, *section):
    return await client.info(*section)


@register_command("dbsize", 0, 0)
async def _dbsize(client):
    return await client.dbsize()


@register_command("keys", 1, 1)
async def _keys(client, pattern):
    return await client.keys(pattern)


@register_command("scan", 1, 5)
async def _scan(client, cursor, *options):
    kwargs: dict[str, Any] = {}
    pairs = list(options)
    while pairs:
        option = pairs.pop(0).lower()
        if not pairs:
            raise QueryError(f"Missing value for SCAN option '{option}'")
        value = pairs.pop(0)
        if option == "match":
            kwargs["match"] = value
        elif option == "count":
            kwargs["count"] = int(value)
        else:
            raise QueryError(f"Unsupported SCAN option '{option}'")
    next_cursor, keys = await client.scan(int(cursor), **kwargs)
    return [str(next_cursor), *keys]


@register_command("exists", 1)
async def _exists(client, *keys):
    return await client.exists(*keys)


@register_command("del", 1)
async def _del(client, *keys):
    return await client.delete(*keys)


@register_command("type", 1, 1)
async def _type(client, key):
    return await client.type(key)


@register_command("ttl", 1, 1)
async def _ttl(client, key):
    return await client.ttl(key)


@register_command("expire", 2, 2)
async def _expire(client, key, seconds):
    return await client.expire(key, int(seconds))


@register_command("persist", 1, 1)
async def _persist(client, key):
    return await client.persist(key)


@register_command("rename", 2, 2)
async def _rename(client, src, dst):
    return await client.rename(src, dst)


@register_command("renamenx", 2, 2)
async def _renamenx(client, src, dst):
    return await client.renamenx(src, dst)


@register_command("unlink", 1)
async def _unlink(client, *keys):
    return await client.unlink(*keys)


@register_command("pttl", 1, 1)
async def _pttl(client, key):
    return await client.pttl(key)


@register_command("pexpire", 2, 2)
async def _pexpire(client, key, milliseconds):
    return await client.pexpire(key, int(milliseconds))


@register_command("randomkey", 0, 0)
async def _randomkey(client):
    return await client.randomkey()


def _pairs(command: str, args: Sequence[str]) -> list[tuple[str, str]]:
    """Split ``a1 b1 a2 b2 ...`` into pairs; odd counts are an arity error."""
    if not args or len(args) % 2:
        raise QueryError(f"Wrong number of arguments for '{command}' command")
    return [(args[i], args[i + 1]) for i in range(0, len(args), 2)]


def _withscores(command: str, options: Sequence[str]) -> bool:
    if not options:
        return False
    if options[0].lower() != "withscores":
        raise QueryError(f"Unsupported {command.upper()} option '{options[0]}'")
    return True


# Strings

SET_FLAGS = ("nx", "xx", "keepttl", "get")
SET_TIMED_OPTIONS = ("ex", "px", "exat", "pxat")


@register_command("get", 1, 1)
async def _get(client, key):
    return await client.get(key)


@register_command("set", 2)
async def _set(client, key, value, *options):
    kwargs: dict[str, Any] = {}
    pending = list(options)
    while pending:
        option = pending.pop(0).lower()
        if option in SET_FLAGS:
            kwargs[option] = True
        elif option in SET_TIMED_OPTIONS:
            if not pending:
                raise QueryError(f"Missing value for SET option '{option}'")
            kwargs[option] = int(pending.pop(0))
        else:
            raise QueryError(f"Unsupported SET option '{option}'")
    return await client.set(key, value, **kwargs)


@register_command("setnx", 2, 2)
async def _setnx(client, key, value):
    return await client.setnx(key, value)


@register_command("setex", 3, 3)
async def _setex(client, key, seconds, value):
    return await client.setex(key, int(seconds), value)


@register_command("psetex", 3, 3)
async def _psetex(client, key, milliseconds, value):
    return await client.psetex(key, int(milliseconds), value)


@register_command("getdel", 1, 1)
async def _getdel(client, key):
    return await client.getdel(key)


@register_command("getrange", 3, 3)
async def _getrange(client, key, start, end):
    return await client.getrange(key, int(start), int(end))


@register_command("mget", 1)
async def _mget(client, *keys):
    return await client.mget(keys)


@register_command("mset", 2)
async def _mset(client, *key_values):
    return await client.mset(dict(_pairs("mset", key_values)))


@register_command("msetnx", 2)
async def _msetnx(client, *key_values):
    return await client.msetnx(dict(_pairs("msetnx", key_values)))


@register_command("incr", 1, 1)
async def _incr(client, key):
    return await client.incr(key)


@register_command("incrby", 2, 2)
async def _incrby(client, key, amount):
    return await client.incrby(key, int(amount))


@register_command("incrbyfloat", 2, 2)
async def _incrbyfloat(client, key, amount):
    return await client.incrbyfloat(key, float(amount))


@register_command("decr", 1, 1)
async def _decr(client, key):
    return await client.decr(key)


@register_command("decrby", 2, 2)
async def _decrby(client, key, amount):
    return await client.decrby(key, int(amount))


@register_command("append", 2, 2)
async def _append(client, key, value):
    return await client.append(key, value)


@register_command("strlen", 1, 1)
async def _strlen(client, key):
    return await client.strlen(key)


# Hashes


@register_command("hget", 2, 2)
async def _hget(client, key, field):
    return await client.hget(key, field)


@register_command("hset", 3)
async def _hset(client, key, *field_values):
    return await client.hset(key, mapping=dict(_pairs("hset", field_values)))


@register_command("hsetnx", 3, 3)
async def _hsetnx(client, key, field, value):
    return await client.hsetnx(key, field, value)


@register_command("hmget", 2)
async def _hmget(client, key, *fields):
    return await client.hmget(key, fields)


@register_command("hgetall", 1, 1)
async def _hgetall(client, key):
    return await client.hgetall(key)


@register_command("hkeys", 1, 1)
async def _hkeys(client, key):
    return await client.hkeys(key)


@register_command("hvals", 1, 1)
async def _hvals(client, key):
    return await client.hvals(key)


@register_command("hexists", 2, 2)
async def _hexists(client, key, field):
    return await client.hexists(key, field)


@register_command("hincrby", 3, 3)
async def _hincrby(client, key, field, amount):
    return await client.hincrby(key, field, int(amount))


@register_command("hincrbyfloat", 3, 3)
async def _hincrbyfloat(client, key, field, amount):
    return await client.hincrbyfloat(key, field, float(amount))


@register_command("hdel", 2)
async def _hdel(client, key, *fields):
    return await client.hdel(key, *fields)


@register_command("hlen", 1, 1)
async def _hlen(client, key):
    return await client.hlen(key)


# Lists


@register_command("lpush", 2)
async def _lpush(client, key, *values):
    return await client.lpush(key, *values)


@register_command("rpush", 2)
async def _rpush(client, key, *values):
    return await client.rpush(key, *values)


@register_command("lpop", 1, 1)
async def _lpop(client, key):
    return await client.lpop(key)


@register_command("rpop", 1, 1)
async def _rpop(client, key):
    return await client.rpop(key)


@register_command("lrange", 3, 3)
async def _lrange(client, key, start, stop):
    return await client.lrange(key, int(start), int(stop))


@register_command("lindex", 2, 2)
async def _lindex(client, key, index):
    return await client.lindex(key, int(index))


@register_command("lset", 3, 3)
async def _lset(client, key, index, value):
    return await client.lset(key, int(index), value)


@register_command("linsert", 4, 4)
async def _linsert(client, key, where, pivot, value):
    if where.lower() not in ("before", "after"):
        raise QueryError(f"Unsupported LINSERT position '{where}'")
    return await client.linsert(key, where.upper(), pivot, value)


@register_command("lrem", 3, 3)
async def _lrem(client, key, count, value):
    return await client.lrem(key, int(count), value)


@register_command("ltrim", 3, 3)
async def _ltrim(client, key, start, stop):
    return await client.ltrim(key, int(start), int(stop))


@register_command("llen", 1, 1)
async def _llen(client, key):
    return await client.llen(key)


# Sets


@register_command("sadd", 2)
async def _sadd(client, key, *members):
    return await client.sadd(key, *members)


@register_command("srem", 2)
async def _srem(client, key, *members):
    return await client.srem(key, *members)


@register_command("smembers", 1, 1)
async def _smembers(client, key):
    return await client.smembers(key)


@register_command("sismember", 2, 2)
async def _sismember(client, key, member):
    return await client.sismember(key, member)


@register_command("smismember", 2)
async def _smismember(client, key, *members):
    return await client.smismember(key, members)


@register_command("scard", 1, 1)
async def _scard(client, key):
    return await client.scard(key)


@register_command("sinter", 1)
async def _sinter(client, *keys):
    return await client.sinter(keys)


@register_command("sunion", 1)
async def _sunion(client, *keys):
    return await client.sunion(keys)


@register_command("sdiff", 1)
async def _sdiff(client, *keys):
    return await client.sdiff(keys)


@register_command("spop", 1, 2)
async def _spop(client, key, *count):
    return await client.spop(key, *(int(c) for c in count))


@register_command("srandmember", 1, 2)
async def _srandmember(client, key, *count):
    return await client.srandmember(key, *(int(c) for c in count))


# Sorted sets


@register_command("zadd", 3)
async def _zadd(client, key, *score_members):
    mapping = {member: float(score) for score, member in _pairs("zadd", score_members)}
    return await client.zadd(key, mapping)


@register_command("zrange", 3, 4)
async def _zrange(client, key, start, stop, *options):
    withscores = _withscores("zrange", options)
    return await client.zrange(key, int(start), int(stop), withscores=withscores)


@register_command("zrevrange", 3, 4)
async def _zrevrange(client, key, start, stop, *options):
    withscores = _withscores("zrevrange", options)
    return await client.zrevrange(key, int(start), int(stop), withscores=withscores)


@register_command("zrangebyscore", 3, 4)
async def _zrangebyscore(client, key, minimum, maximum, *options):
    withscores = _withscores("zrangebyscore", options)
    return await client.zrangebyscore(key, minimum, maximum, withscores=withscores)


@register_command("zscore", 2, 2)
async def _zscore(client, key, member):
    return await client.zscore(key, member)


@register_command("zincrby", 3, 3)
async def _zincrby(client, key, amount, member):
    return await client.zincrby(key, float(amount), member)


@register_command("zrank", 2, 2)
async def _zrank(client, key, member):
    return await client.zrank(key, member)


@register_command("zrevrank", 2, 2)
async def _zrevrank(client, key, member):
    return await client.zrevrank(key, member)


@register_command("zcount", 3, 3)
async def _zcount(client, key, minimum, maximum):
    return await client.zcount(key, minimum, maximum)


@register_command("zcard", 1, 1)
async def _zcard(client, key):
    return await client.zcard(key)


@register_command("zrem", 2)
async def _zrem(client, key, *members):
    return await client.zrem(key, *members)


class KeyValueDriver(BaseDriver):
    """Redis driver on the redis-py asyncio client.

    Relational introspection has no meaning here: ``get_tables`` and
    ``get_schema`` return empty lists and ``get_table_details`` an empty
    bundle. The key inspector uses ``scan_keys``/``get_key_*``/``set_key_value``.
    """

    display_name = "key-value store"

    def _db_index(self) -> int:
        database = (self.profile.database or "").strip()
        return int(database) if database.isdigit() else DEFAULT_KEYVALUE_DB

    async def _open(self) -> Any:
        client = aioredis.Redis(
            host=self.profile.host,
            port=self.profile.port,
            password=self.profile.password or None,
            db=self._db_index(),
            socket_connect_timeout=CONNECT_TIMEOUT,
            decode_responses=True,
        )
        try:
            await client.ping()
        except Exception:
            await client.aclose()
            raise
        return client

    async def _close(self, connection: Any) -> None:
        await connection.aclose()

    async def query(self, text: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        client = self._require_connection()

        tokens = parse_command_block(text)
        if not tokens:
            return QueryResult(rows=[], execution_time_ms=0)

        name, args = tokens[0].lower(), tokens[1:]
        if params:
            args.extend(str(param) for param in params)

        command = COMMANDS.get(name)
        if command is None:
            raise UnsupportedCommandError(name)
        command.check_arity(args)

        timer = QueryTimer()
        try:
            with timer:
                result = await command.handler(client, *args)
        except (RedisError, ValueError) as e:
            error_msg = str(e)
            log_query_execution(
                query=text,
                target=self.target,
                success=False,
                error=error_msg,
                duration_ms=timer.duration_ms,
            )
            raise QueryError(error_msg) from e

        rows = wrap_result(result)
        log_query_execution(
            query=text,
            target=self.target,
            success=True,
            row_count=len(rows),
            duration_ms=timer.duration_ms,
        )
        return QueryResult(rows=rows, execution_time_ms=timer.elapsed_ms, command=name.upper())

    async def get_tables(self) -> list[str]:
        return []

    async def get_schema(self) -> list[dict[str, Any]]:
        return []

    async def get_table_details(self, table_name: str) -> dict[str, Any]:
        return empty_table_details(table_name)

    async def scan_keys(
        self, cursor: str = "0", pattern: str = "*", count: int = KEY_SCAN_COUNT
    ) -> tuple[str, list[str]]:
        """Return one SCAN page as ``(next_cursor, keys)``; ``"0"`` ends the scan."""
        client = self._require_connection()
        next_cursor, keys = await client.scan(int(cursor), match=pattern, count=count)
        return str(next_cursor), list(keys)

    async def get_key_type(self, key: str) -> str:
        client = self._require_connection()
        return await client.type(key)

    async def get_key_value(self, key: str) -> Any:
        """Read a key according to its type; ``None`` for unknown types."""
        client = self._require_connection()
        key_type = await self.get_key_type(key)
        if key_type == "string":
            return await client.get(key)
        if key_type == "list":
            return await client.lrange(key, 0, -1)
        if key_type == "set":
            return sorted(await client.smembers(key))
        if key_type == "zset":
            return await client.zrange(key, 0, -1, withscores=True)
        if key_type == "hash":
            return await client.hgetall(key)
        return None

    async def set_key_value(self, key: str, value: Any, key_type: str) -> None:
        client = self._require_connection()
        if key_type == "string":
            await client.set(key, value)
        elif key_type == "hash":
            if not isinstance(value, dict):
                raise QueryError("Hash values must be given as a mapping of field to value")
            await client.hset(key, mapping=value)
        else:
            raise QueryError(f"Editing keys of type '{key_type}' is not supported yet")
