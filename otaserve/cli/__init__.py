"""otaserve command-line interface."""
