# kuflow_samples/temporal/__init__.py
# Temporal 工作流模块
#
# 这个模块包含：
# - client.py: Temporal Client 封装（Engine Token 认证、mTLS、加密）
# - codec.py: Payload 加密编解码器
# - types.py: Workflow / Activity 共享数据类型
# - worker.py: Temporal Worker 启动器
# - workflows/: 工作流定义（loan / email / uivision）
# - activities/: 活动定义
#
# 注意：Workflow 模块在沙箱中加载时会导入这个包，
# 这里不要导入 client.py 等依赖网络库的模块。
#
# 使用方式：
#   from kuflow_samples.temporal.client import get_temporal_client
#   from kuflow_samples.temporal.workflows import LoanWorkflow
