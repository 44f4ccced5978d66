"""
婚礼请柬访客追踪服务
"""
