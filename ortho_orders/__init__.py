# ortho_orders/__init__.py
"""
矫形鞋垫订单后端：下单 + 尺码匹配 + 库存预占。
"""

__version__ = "1.0.0"
