"""
ERP Bridge API: vistas de SQL Server como API de solo lectura y
sincronización de productos hacia Lark Bitable.
"""
