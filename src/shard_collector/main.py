#!/usr/bin/env python3
"""
main.py
- Main asynchronous entrypoint for the shard collector container.
- Launches:
    - Shard metrics loop: arms the store-size gauge every collect interval
    - FastAPI server: /healthz, /metrics and manual /collect trigger
- Builds the OpenTelemetry export pipeline up front; any setup failure is fatal.
"""
import asyncio
import signal
import sys
from threading import Thread

import sentry_sdk
import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse, PlainTextResponse
from loguru import logger

from shard_collector.core import config
from shard_collector.core import sample_state
from shard_collector.core.config import configure_logging
from shard_collector.core.config_loader import load_settings, preview_yaml
from shard_collector.core.context import background
from shard_collector.core.errors import ShardCollectorError
from shard_collector.lib.collector import ShardCollector
from shard_collector.runner import shard_metrics


def init_sentry(dsn=config.SENTRY_DSN):
    # Only if a Sentry DSN is configured
    if dsn:
        sentry_sdk.init(dsn=dsn, traces_sample_rate=1.0)
        logger.info("[main] Sentry error reporting enabled")


# --- FastAPI Server ---
def create_api(collector, ctx):
    api = FastAPI()

    @api.get("/healthz")
    async def health():
        # healthy only while export cycles commit observations
        healthy = sample_state.shard_sample_last_ok and shard_metrics.shard_collect_last_ok
        status = "ok" if healthy else "degraded"
        return JSONResponse(
            {
                "status": status,
                "last_sample_success": sample_state.shard_sample_last_success_timestamp,
                "sample_errors": sample_state.shard_sample_errors_total,
                "last_collect_success": shard_metrics.shard_collect_last_success_timestamp,
            },
            status_code=200 if status == "ok" else 503,
        )

    @api.post("/collect")
    async def collect_now():
        ok = shard_metrics.tick(collector, ctx)
        return {"status": "triggered" if ok else "failed"}

    @api.get("/metrics")
    async def metrics():
        return PlainTextResponse(shard_metrics.render_metrics(), media_type="text/plain")

    return api


def start_api(api, port):
    Thread(
        target=uvicorn.run,
        args=(api,),
        kwargs={"host": "0.0.0.0", "port": port, "log_level": "warning"},
        daemon=True,
    ).start()
    logger.info(f"[api] Listening on :{port}")


def build_collector(settings):
    return ShardCollector(
        settings.opensearch_endpoint,
        settings.otlp_endpoint,
        index_names=settings.monitored_indices,
        http_timeout=settings.http_timeout,
        export_interval=settings.export_interval,
        insecure=settings.otlp_insecure,
        service_name=settings.service_name,
        service_version=settings.service_version,
    )


# --- Main Async Orchestration ---
async def main(collector, settings):
    ctx = background()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, ctx.cancel)

    with collector:
        if settings.api_enabled:
            start_api(create_api(collector, ctx), settings.api_port)
        await shard_metrics.run(collector, ctx, settings.collect_interval)

    logger.info("📴 Shard collector stopped cleanly.")


def run():
    configure_logging()
    init_sentry()

    if config.DEBUG:
        preview_yaml(config.CONFIG_FILE, name="collector config")

    try:
        settings = load_settings()
        collector = build_collector(settings)
    except ShardCollectorError as e:
        logger.critical(f"[main] Failed to create collector: {e}")
        sys.exit(1)

    asyncio.run(main(collector, settings))


if __name__ == "__main__":
    try:
        run()
    except KeyboardInterrupt:
        logger.info("🛑 KeyboardInterrupt received. Exiting.")
