from dataclasses import dataclass

from src.storefront.core.services.auth import JwtService, LoginAttemptTracker
from src.storefront.core.services.database import DbSessionService
from src.storefront.core.services.email import EmailService
from src.storefront.core.services.encryption import FieldEncryptionService
from src.storefront.core.services.payment import MercadoPagoClient
from src.storefront.core.services.security_log import SecurityLogger
from src.storefront.core.services.uploads import SecureUploadService


@dataclass
class ApplicationDependencies:
    database_service: DbSessionService
    security_logger: SecurityLogger
    encryption: FieldEncryptionService
    jwt_service: JwtService
    login_attempts: LoginAttemptTracker
    email_service: EmailService
    payment_client: MercadoPagoClient
    upload_service: SecureUploadService
