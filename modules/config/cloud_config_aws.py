# AWS Cloud Configuration for iamlab
# Provider: Amazon Web Services (aws provider), pointed at a LocalStack mock

# Provider metadata
PROVIDER_NAME = "AWS"
PROVIDER_PREFIX = ["aws_"]
PROVIDER_BLOCK = "aws"

DEFAULT_REGION = "us-east-1"

# Service endpoint used when the provider block has no override for it
SERVICE_URL_TEMPLATE = "https://{service}.{region}.amazonaws.com"
GLOBAL_SERVICE_URL_TEMPLATE = "https://{service}.amazonaws.com"

# Services whose API is not partitioned by region
GLOBAL_SERVICES = ["iam", "organizations", "route53", "cloudfront"]

# Older provider releases spell some endpoint keys differently
ENDPOINT_ALIASES = {
    "cloudwatchlogs": "logs",
    "cloudwatchevents": "events",
}

# LocalStack mock backend, reachable under the docker-compose service name
MOCK_BACKEND_URL = "http://aws:4566"
MOCK_HEALTH_PATH = "/_localstack/health"
MOCK_HEALTH_TIMEOUT = 5
