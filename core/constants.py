"""Common constants shared across svccat modules."""

ADMINISTRATOR_ACCESS_ARN = "arn:aws:iam::aws:policy/AdministratorAccess"

SERVICE_CATALOG_PRINCIPAL = "servicecatalog.amazonaws.com"

DEFAULT_TEMPLATE_SOURCE = "infra/templates/ec2_instance_cft.yaml"
DEFAULT_TEMPLATE_PREFIX = "templates"

DEFAULT_INLINE_ACTIONS = [
    "cloudformation:*",
    "servicecatalog:*",
]

HIGH_RISK_SERVICES = {"iam", "kms", "organizations", "sts"}

OUTPUT_KEYS = {
    "portfolio_id": "PortfolioId",
    "product_id": "ProductId",
    "launch_role_arn": "LaunchRoleArn",
}
