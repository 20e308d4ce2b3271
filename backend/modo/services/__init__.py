"""
Services / 服务层
AI-backed workflows layered over the storages.
"""
