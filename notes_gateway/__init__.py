"""
Notes Gateway - accounts / notes / folders 데이터 접근 게이트웨이
"""

__version__ = "1.0.0"
