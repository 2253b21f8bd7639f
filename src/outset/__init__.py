# Copyright 2025 Ben Mensi
# SPDX-License-Identifier: Apache-2.0

"""Outset: run scripts and packages at boot, login and on demand."""

__version__ = "0.1.0"
