"""DynamoDB 上のレコードとドメインモデルを相互変換するストア群。"""
