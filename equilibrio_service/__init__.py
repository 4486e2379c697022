"""
Equilibrio 行情筛选服务
基于均衡位（52 周高低点中值）的股票筛选微服务，提供 HTTP 接口

架构分层：
  数据获取层 (Acquisition)  → 行情数据源（合成数据 / 静态文件）
  缓存层     (Cache)        → Redis / MongoDB 两级短时缓存
  处理层     (Processing)   → K 线标准化、CSV 导出
  分析层     (Analysis)     → 衍生指标、过滤、排序、支撑/阻力估算
"""

__version__ = "1.0.0"
