"""Temperature unit conversion. Only presentation code converts; the core stays in Celsius."""

from __future__ import annotations


def to_fahrenheit(celsius: float) -> float:
    return celsius * 9.0 / 5.0 + 32.0


def to_celsius(fahrenheit: float) -> float:
    return (fahrenheit - 32.0) * 5.0 / 9.0


def display_value(celsius: float, fahrenheit: bool) -> float:
    return to_fahrenheit(celsius) if fahrenheit else celsius


def format_temperature(celsius: float, fahrenheit: bool) -> str:
    """Render a Celsius value as a rounded string with its unit suffix."""
    value = display_value(celsius, fahrenheit)
    return f"{round(value)}{'F' if fahrenheit else 'C'}"
