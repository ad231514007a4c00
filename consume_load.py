"""
consume_load.py: async load script that drains one valor concurrently

Loads --links fresh URLs under --valor, then fires --count concurrent
/obtener-link requests and reports how many were served, how many got 404,
and whether any URL was handed out twice (it never should be on Postgres).

Usage:
  python consume_load.py --base http://127.0.0.1:4000 --valor 100 --links 1000 --count 1200 --concurrency 100
"""
import argparse
import asyncio
import time
import uuid
from collections import Counter
from datetime import datetime, timezone

import httpx


def _now_iso():
    return datetime.now(timezone.utc).isoformat()


async def _seed(client: httpx.AsyncClient, base: str, valor: int, n: int) -> int:
    run = uuid.uuid4().hex[:8]
    links = [f"https://load.example/{run}/{i}" for i in range(n)]
    r = await client.post(f"{base}/agregar-links", json={"valor": valor, "links": links}, timeout=60)
    r.raise_for_status()
    return r.json()["total"]


async def _consume_one(client: httpx.AsyncClient, base: str, valor: int):
    try:
        r = await client.post(f"{base}/obtener-link", json={"valor": valor}, timeout=10)
    except httpx.HTTPError:
        return "error", None
    if r.status_code == 200:
        return "ok", r.json()["url"]
    if r.status_code == 404:
        return "empty", None
    return "error", None


async def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--base", default="http://127.0.0.1:4000")
    parser.add_argument("--valor", type=int, default=100)
    parser.add_argument("--links", type=int, default=1000)
    parser.add_argument("--count", type=int, default=1200)
    parser.add_argument("--concurrency", type=int, default=100)
    args = parser.parse_args()

    limit = httpx.Limits(max_connections=args.concurrency, max_keepalive_connections=args.concurrency)
    async with httpx.AsyncClient(limits=limit) as client:
        available = await _seed(client, args.base, args.valor, args.links)
        print(f"Seeded valor={args.valor}: {available} unused links")

        start_iso = _now_iso()
        t0 = time.perf_counter()
        sem = asyncio.Semaphore(args.concurrency)

        async def _task():
            async with sem:
                return await _consume_one(client, args.base, args.valor)

        results = await asyncio.gather(*(_task() for _ in range(args.count)))

    dt = time.perf_counter() - t0
    outcomes = Counter(kind for kind, _ in results)
    urls = Counter(url for kind, url in results if kind == "ok")
    dupes = {url: n for url, n in urls.items() if n > 1}

    print(f"START: {start_iso}")
    print(f"END:   {_now_iso()}")
    print(f"TOTAL: {dt:.3f} s")
    print(f"OPS:   requests={args.count}, ok={outcomes['ok']}, empty={outcomes['empty']}, error={outcomes['error']}")
    print(f"DUPES: {len(dupes)}")
    if dt > 0:
        print(f"RPS:   {args.count/dt:.1f} req/s")


if __name__ == "__main__":
    asyncio.run(main())
