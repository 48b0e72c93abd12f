"""领域层模型与规则。

包含：
- models: Content / Part / GenerateContentRequest / GenerateContentResponse 等数据模型。
- content: 新消息构造与会话历史校验。
- response_helpers: 响应文本读取与拦截原因格式化。
- exceptions: 异常类型定义。
"""
