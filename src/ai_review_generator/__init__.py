"""
AI 评论生成服务
"""
__version__ = "0.1.0"
