from __future__ import annotations
import json, sys, time
from typing import Any, TextIO, Optional
_LOG_LEVEL = 'INFO'
_LOG_FORMAT = 'json'
_STREAM: Optional[TextIO] = None
_LEVELS = {'DEBUG': 0, 'INFO': 1, 'WARN': 2, 'WARNING': 2, 'ERROR': 3}

def configure_logging(level: str = 'INFO', format: str = 'json', stream: Optional[TextIO] = None):
    """Set the global level and output format ('json' or 'text').

    stream defaults to whatever sys.stderr is at emit time.
    """
    global _LOG_LEVEL, _LOG_FORMAT, _STREAM
    level = level.upper()
    if level not in _LEVELS:
        raise ValueError(f'Unknown log level: {level}')
    if format.lower() not in ('json', 'text'):
        raise ValueError(f'Unknown log format: {format}')
    _LOG_LEVEL = 'WARN' if level == 'WARNING' else level
    _LOG_FORMAT = format.lower()
    _STREAM = stream

def _should_log(level: str) -> bool:
    return _LEVELS.get(level.upper(), 1) >= _LEVELS.get(_LOG_LEVEL, 1)

def log(level: str, message: str, **fields: Any):
    if not _should_log(level):
        return
    out = _STREAM or sys.stderr
    ts = time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime())
    lvl = level.upper()
    if _LOG_FORMAT == 'json':
        rec = {'ts': ts, 'level': lvl, 'msg': message}
        if fields: rec.update(fields)
        print(json.dumps(rec, sort_keys=True, default=str), file=out)
    else:
        extra = ' '.join(f'{k}={v}' for k,v in fields.items()) if fields else ''
        line = f"{ts} [{lvl}] {message}" + (f" {extra}" if extra else '')
        print(line, file=out)

def debug(message: str, **fields: Any): log('debug', message, **fields)

def info(message: str, **fields: Any): log('info', message, **fields)

def warn(message: str, **fields: Any): log('warn', message, **fields)

def error(message: str, **fields: Any): log('error', message, **fields)
