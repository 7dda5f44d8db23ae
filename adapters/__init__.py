"""Adapters exposing the wellness core to the outside world."""
