"""
工具包 - 资产数据编解码与数量量化
"""
