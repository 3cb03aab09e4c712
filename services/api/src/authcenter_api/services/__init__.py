"""服务层：认证、权限解析与管理能力。"""
