"""Core configuration, persistence and cross-cutting helpers."""
