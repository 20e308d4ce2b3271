"""
Utilities / 工具函数
"""
