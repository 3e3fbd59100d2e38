"""Request routing: action classification, booting and batch replay."""

from kompo.routing.dispatcher import Dispatcher, get_komposer_type

__all__ = ["Dispatcher", "get_komposer_type"]
