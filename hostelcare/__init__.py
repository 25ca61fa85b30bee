"""Hostel maintenance ticket service."""
