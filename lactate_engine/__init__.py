"""
Lactate Engine - lactate threshold detection for incremental exercise tests.

Sub-packages:
- calculations: threshold methods, validation, zones, stage corrections
- models: immutable result records
- services: boundary adapters and pipeline orchestration
"""

__version__ = "1.0.0"
