from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # persistence.xml 이 META-INF/ 아래에 있는 루트 (Maven 기본 리소스 디렉터리)
    input_dir: Path = Field(default=Path("src/main/resources"), alias="SCHEMAGEN_INPUT_DIR")
    # 컴파일 산출물 위치(옵션, input_dir 다음으로 검색)
    classes_dir: Path | None = Field(default=None, alias="SCHEMAGEN_CLASSES_DIR")

    # H2 in-memory DB가 기본값 (연결은 하지 않고 dialect 선택에만 사용)
    jdbc_driver: str = Field(default="org.h2.Driver", alias="SCHEMAGEN_JDBC_DRIVER")
    jdbc_url: str = Field(default="jdbc:h2:mem:db", alias="SCHEMAGEN_JDBC_URL")
    jdbc_user: str | None = Field(default=None, alias="SCHEMAGEN_JDBC_USER")
    jdbc_password: str | None = Field(default=None, alias="SCHEMAGEN_JDBC_PASSWORD")

    output_dir: Path = Field(default=Path("target/generated/sql"), alias="SCHEMAGEN_OUTPUT_DIR")
    create_filename: str = Field(default="createDDL.sql", alias="SCHEMAGEN_CREATE_FILENAME")
    drop_filename: str = Field(default="dropDDL.sql", alias="SCHEMAGEN_DROP_FILENAME")

    dynamic: bool = Field(default=True, alias="SCHEMAGEN_DYNAMIC")
    timeout: float | None = Field(default=None, alias="SCHEMAGEN_TIMEOUT")
    log_level: str = Field(default="INFO", alias="SCHEMAGEN_LOG_LEVEL")


settings = Settings()
