"""领域层模型。

包含：
- models: Attachment / Citation / Message / Fragment / Payload 等数据结构。
- conversation: 会话（带 epoch 的消息列表）。
- exceptions: 业务异常类型定义。
"""
