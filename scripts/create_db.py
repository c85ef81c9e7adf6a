"""
创建数据库表并安装默认设置
"""
from ai_review_generator.core import get_settings, setup_logging
from ai_review_generator.core.database import init_db
from ai_review_generator.services.settings_service import get_settings_service

settings = get_settings()

if __name__ == "__main__":
    setup_logging(settings.log_level)

    # 创建所有表
    init_db()

    # 补齐默认设置（已有值不覆盖）
    get_settings_service().install_defaults()

    print(f"✅ 数据库初始化完成: {settings.database_url}")
