"""
数据流分层架构
  Layer 1 – Acquisition  : 行情数据源（合成 / 静态文件）
  Layer 2 – Cache        : 两级短时缓存（Redis → MongoDB）
  Layer 3 – Processing   : K 线标准化、CSV 导出
  Layer 4 – Analysis     : 支撑/阻力估算

查询流水线使用的纯函数模块：
  metrics    : 衍生指标（均衡位、趋势、信号、成交量分档）
  filtering  : 过滤
  sorting    : 排序
  cache_keys : 查询缓存键编码
"""
