"""FastAPI dependencies for the services created at startup."""
from fastapi import Request
from ziptag.services.entry_collector import EntryCollector
from ziptag.services.zip_resolver import ZipResolver


def get_resolver(request: Request) -> ZipResolver:
    return request.app.state.resolver


def get_collector(request: Request) -> EntryCollector:
    return request.app.state.collector
