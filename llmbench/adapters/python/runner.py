# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Child-side runner for Python candidates.

This file is executed as a script in a fresh interpreter (`python -B
runner.py`), never imported by llmbench itself. It must stay stdlib-only:
the child has none of llmbench's dependencies on its path.

Protocol: one JSON payload on stdin, protocol lines on stdout, each one
"@@llmbench " + a JSON object carrying the payload's nonce. Before the
candidate is imported, protocol output moves to a private duplicate of fd 1
and fd 1 itself is pointed at stderr, so neither `print` nor `os.write(1,
...)` from candidate code reaches the stream the parent reads.

Payload fields:
  nonce          echoed in every event
  mode           "validate" | "observe" | "bench"
  path           file to load
  function       name to call, or null for the primary export
  inputs         list of positional argument lists
  runs, warmup   bench only
  per_iteration  bench only: time each call, or just the whole loop
"""

import asyncio
import copy
import gc
import importlib.machinery
import importlib.util
import inspect
import json
import os
import sys
import time

PREFIX = "@@llmbench "
MODULE_NAME = "_llmbench_candidate"

_protocol = sys.stdout
_nonce = None


def emit(event, **fields):
    _protocol.write(PREFIX + json.dumps(dict(event=event, nonce=_nonce, **fields)) + "\n")
    _protocol.flush()


def claim_stdout():
    """Keep fd 1 for protocol lines and send everything else to stderr."""
    global _protocol
    sys.stdout.flush()
    _protocol = os.fdopen(os.dup(1), "w", encoding="utf-8")
    os.dup2(2, 1)
    sys.stdout = sys.stderr


def describe(exc):
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


def to_jsonable(value, depth=0):
    """Normalize a return value to plain JSON types, the same way every time."""
    if depth > 100:
        return repr(value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item, depth + 1) for item in value]
    if isinstance(value, (set, frozenset)):
        items = [to_jsonable(item, depth + 1) for item in value]
        try:
            return sorted(items)
        except TypeError:
            return sorted(items, key=repr)
    if isinstance(value, dict):
        return {
            (key if isinstance(key, str) else repr(key)): to_jsonable(item, depth + 1)
            for key, item in value.items()
        }
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    return repr(value)


def primary_function(module):
    """The function a module is 'about': __all__ first, then public, then any."""
    defined = [
        obj
        for obj in vars(module).values()
        if inspect.isfunction(obj) and obj.__module__ == MODULE_NAME
    ]
    exported = getattr(module, "__all__", None) or []
    for name in exported:
        obj = getattr(module, name, None)
        if callable(obj):
            return obj
    public = [fn for fn in defined if not fn.__name__.startswith("_")]
    if public or defined:
        return (public or defined)[0]
    return None


def load_function(path, name):
    # An explicit loader so files without a .py suffix load too.
    loader = importlib.machinery.SourceFileLoader(MODULE_NAME, path)
    spec = importlib.util.spec_from_loader(MODULE_NAME, loader)
    module = importlib.util.module_from_spec(spec)
    sys.modules[MODULE_NAME] = module
    spec.loader.exec_module(module)

    if name:
        fn = getattr(module, name, None)
        if callable(fn):
            return fn

    fn = primary_function(module)
    if fn is None:
        wanted = f"'{name}'" if name else "any function"
        raise LookupError(f"{path} does not define {wanted}")
    return fn


async def _await(awaitable):
    return await awaitable


def call(fn, args):
    result = fn(*args)
    if inspect.isawaitable(result):
        result = asyncio.run(_await(result))
    return result


def run_cases(fn, inputs):
    for index, args in enumerate(inputs):
        start = time.perf_counter()
        try:
            value = call(fn, args)
        except (Exception, SystemExit) as exc:
            emit(
                "case",
                index=index,
                ok=False,
                error=describe(exc),
                duration_ms=(time.perf_counter() - start) * 1000,
            )
            continue
        emit(
            "case",
            index=index,
            ok=True,
            actual=to_jsonable(value),
            duration_ms=(time.perf_counter() - start) * 1000,
        )


def max_rss_kb():
    if sys.platform == "win32":
        return None
    import resource

    usage = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # Linux reports kilobytes, macOS reports bytes.
    return usage // 1024 if sys.platform == "darwin" else usage


def gc_count():
    return sum(generation["collections"] for generation in gc.get_stats())


def run_bench(fn, payload):
    inputs = payload.get("inputs") or [[]]
    runs = int(payload.get("runs", 1000))
    warmup = int(payload.get("warmup", 0))

    for i in range(warmup):
        call(fn, copy.deepcopy(inputs[i % len(inputs)]))

    collections_before = gc_count()
    if payload.get("per_iteration", True):
        samples = []
        for i in range(runs):
            args = copy.deepcopy(inputs[i % len(inputs)])
            start = time.perf_counter_ns()
            call(fn, args)
            samples.append(time.perf_counter_ns() - start)
        timing = {"samples_ns": samples}
    else:
        start = time.perf_counter_ns()
        for i in range(runs):
            call(fn, inputs[i % len(inputs)])
        timing = {"total_ns": time.perf_counter_ns() - start}

    emit(
        "bench",
        iterations=runs,
        rss_kb=max_rss_kb(),
        gc_collections=gc_count() - collections_before,
        **timing,
    )


def main():
    global _nonce
    payload = json.loads(sys.stdin.read())
    _nonce = payload.get("nonce")
    claim_stdout()
    sys.path.insert(0, os.path.dirname(os.path.abspath(payload["path"])))

    try:
        fn = load_function(payload["path"], payload.get("function"))
    except (Exception, SystemExit) as exc:
        emit("load_error", error=describe(exc))
        return 1
    emit("loaded")

    if payload.get("mode") == "bench":
        try:
            run_bench(fn, payload)
        except (Exception, SystemExit) as exc:
            emit("bench_error", error=describe(exc))
            return 1
        return 0

    run_cases(fn, payload.get("inputs") or [])
    return 0


if __name__ == "__main__":
    sys.exit(main())
