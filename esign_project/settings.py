from pathlib import Path
from decouple import config
import logging

BASE_DIR = Path(__file__).resolve().parent.parent

LOGS_DIR = BASE_DIR / 'logs'
LOGS_DIR.mkdir(exist_ok=True)

SECRET_KEY = config('SECRET_KEY', default='django-insecure-change-in-production')

DEBUG = config('DEBUG', default=True, cast=bool)

allowed_hosts_env = config('ALLOWED_HOSTS', default=None)
if allowed_hosts_env:
    ALLOWED_HOSTS = [host.strip() for host in allowed_hosts_env.split(',')]
elif not DEBUG:
    ALLOWED_HOSTS = ['*']
else:
    ALLOWED_HOSTS = ['localhost', '127.0.0.1']

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'rest_framework.authtoken',
    'corsheaders',
    'drf_spectacular',
    'apps.domain',
    'apps.application',
    'apps.infrastructure',
    'apps.presentation',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'esign_project.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'esign_project.wsgi.application'

# DATABASE_URL (Render/Heroku style) takes precedence over the discrete variables
DATABASE_URL = config('DATABASE_URL', default=None)

if DATABASE_URL:
    import dj_database_url
    DATABASES = {
        'default': dj_database_url.parse(DATABASE_URL, conn_max_age=600)
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': config('POSTGRES_DB', default='esign_db'),
            'USER': config('POSTGRES_USER', default='esign_user'),
            'PASSWORD': config('POSTGRES_PASSWORD', default='esign_pass'),
            'HOST': config('DB_HOST', default='db'),
            'PORT': config('DB_PORT', default='5432'),
        }
    }

AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

LANGUAGE_CODE = 'pt-br'

TIME_ZONE = 'America/Sao_Paulo'

USE_I18N = True

USE_TZ = True

STATIC_URL = 'static/'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.TokenAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_PAGINATION_CLASS': 'rest_framework.pagination.PageNumberPagination',
    'PAGE_SIZE': 20,
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
    ],
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
}

CORS_ALLOW_ALL_ORIGINS = config('CORS_ALLOW_ALL_ORIGINS', default=True, cast=bool)
CORS_ALLOW_CREDENTIALS = True

logger = logging.getLogger(__name__)
logger.info(f'CORS_ALLOW_ALL_ORIGINS = {CORS_ALLOW_ALL_ORIGINS}')

CORS_ALLOW_METHODS = [
    'DELETE',
    'GET',
    'OPTIONS',
    'PATCH',
    'POST',
    'PUT',
]
CORS_ALLOW_HEADERS = [
    'accept',
    'accept-encoding',
    'authorization',
    'content-type',
    'dnt',
    'origin',
    'user-agent',
    'x-csrftoken',
    'x-requested-with',
]
CORS_PREFLIGHT_MAX_AGE = 86400

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'file': {
            'level': 'INFO',
            'class': 'logging.FileHandler',
            'filename': BASE_DIR / 'logs' / 'django.log',
            'formatter': 'verbose',
        },
        'console': {
            'level': 'DEBUG',
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console', 'file'],
        'level': 'INFO',
    },
    'loggers': {
        'django': {
            'handlers': ['console', 'file'],
            'level': 'INFO',
            'propagate': False,
        },
        'apps': {
            'handlers': ['console', 'file'],
            'level': 'DEBUG',
            'propagate': False,
        },
    },
}

# Reminder policy
REMINDERS_MAX_PER_SIGNER = config('REMINDERS_MAX_PER_SIGNER', default=3, cast=int)
REMINDERS_MIN_HOURS_BETWEEN = config('REMINDERS_MIN_HOURS_BETWEEN', default=24, cast=int)

# Invitation tokens for external signers
INVITATION_TOKEN_TTL_DAYS = config('INVITATION_TOKEN_TTL_DAYS', default=7, cast=int)

# Notification delivery (outbox -> webhook)
NOTIFICATION_WEBHOOK_URL = config('NOTIFICATION_WEBHOOK_URL', default='')
NOTIFICATION_WEBHOOK_TOKEN = config('NOTIFICATION_WEBHOOK_TOKEN', default='')
NOTIFICATION_TIMEOUT = config('NOTIFICATION_TIMEOUT', default=30, cast=int)
NOTIFICATION_RETRY_POLICY = {
    'max_retries': config('NOTIFICATION_MAX_RETRIES', default=3, cast=int),
    'delay': config('NOTIFICATION_RETRY_DELAY', default=1.0, cast=float),
}
OUTBOX_BATCH_SIZE = config('OUTBOX_BATCH_SIZE', default=50, cast=int)

# Swagger/OpenAPI Configuration
SPECTACULAR_SETTINGS = {
    'TITLE': 'eSign Workflow API',
    'DESCRIPTION': '''
    API para gerenciamento de envelopes de assinatura com múltiplos signatários.

    ## Funcionalidades Principais

    - **Envelopes**: Criação, envio, cancelamento e consulta de envelopes
    - **Ordem de assinatura**: OWNER_FIRST ou INVITEES_FIRST, validada a cada assinatura
    - **Assinatura e recusa**: Por usuários internos ou por convidados com token de convite
    - **Lembretes**: Envio de lembretes com limite de quantidade e intervalo mínimo
    - **Auditoria**: Trilha de auditoria de todos os eventos do envelope

    ## Autenticação

    1. Faça uma requisição POST para `/api/api-token-auth/` com `username` e `password`
    2. Use o token retornado no header: `Authorization: Token <seu-token>`

    ## Códigos de Status HTTP

    - `200 OK`: Requisição bem-sucedida
    - `201 Created`: Recurso criado com sucesso
    - `400 Bad Request`: Erro na requisição (validação, dados inválidos)
    - `401 Unauthorized`: Token de autenticação inválido ou ausente
    - `403 Forbidden`: Sem permissão para a operação
    - `404 Not Found`: Recurso não encontrado
    - `409 Conflict`: Estado inválido, ordem de assinatura violada ou conflito de concorrência
    ''',
    'VERSION': '1.0.0',
    'SERVE_INCLUDE_SCHEMA': False,
    'LICENSE': {
        'name': 'Proprietary',
    },
    'TAGS': [
        {'name': 'Autenticação', 'description': 'Endpoints para autenticação e obtenção de tokens'},
        {'name': 'Envelopes', 'description': 'Gerenciamento de envelopes e do fluxo de assinatura'},
        {'name': 'Lembretes', 'description': 'Envio de lembretes para signatários pendentes'},
        {'name': 'Health', 'description': 'Endpoints de verificação de saúde da API'},
    ],
    'SCHEMA_PATH_PREFIX': '/api/',
    'COMPONENT_SPLIT_REQUEST': True,
    'COMPONENT_NO_READ_ONLY_REQUIRED': True,
    'SWAGGER_UI_SETTINGS': {
        'deepLinking': True,
        'displayRequestDuration': True,
        'docExpansion': 'list',
        'filter': True,
    },
}
