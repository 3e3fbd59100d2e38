"""Client runtime: live komposers, interaction triggers and the HTTP transport."""

from kompo.client.action import Action
from kompo.client.debounce import AsyncioScheduler, Debounced, ThreadingScheduler, default_scheduler
from kompo.client.element import KompoPage, LiveKomponent, LiveKomposer
from kompo.client.interactions import InteractionRunner
from kompo.client.transport import KompoClient, KompoRequestError

__all__ = [
    "Action",
    "AsyncioScheduler",
    "Debounced",
    "InteractionRunner",
    "KompoClient",
    "KompoPage",
    "KompoRequestError",
    "LiveKomponent",
    "LiveKomposer",
    "ThreadingScheduler",
    "default_scheduler",
]
