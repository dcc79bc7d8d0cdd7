"""基准评估：批量运行求解器并输出表格与图表。"""
