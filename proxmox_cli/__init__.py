"""Command-line client for the Proxmox VE management API."""
