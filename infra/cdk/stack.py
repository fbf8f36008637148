"""CDK stack declaring the Service Catalog portfolio, product and launch role."""

from __future__ import annotations

import posixpath

from aws_cdk import CfnOutput, RemovalPolicy, Stack
from aws_cdk import aws_iam as iam
from aws_cdk import aws_s3 as s3
from aws_cdk import aws_s3_deployment as s3deploy
from aws_cdk import aws_servicecatalog as servicecatalog
from constructs import Construct

from core.models import CatalogDefinition
from core.naming import resolve_bucket_name
from core.policy.documents import launch_role_inline_policy, launch_role_trust_policy
from core.template import TemplateArtifact


class ServiceCatalogStack(Stack):
    """Template bucket, launch role, portfolio, product and their bindings.

    Two orderings are declared by hand because the references are indirect:
    the product waits for the template upload (its URL is interpolated from the
    bucket domain name), and the launch constraint waits for the role and its
    inline policy.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        definition: CatalogDefinition,
        artifact: TemplateArtifact,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)
        self.definition = definition
        self.artifact = artifact

        self.bucket = self._template_bucket()
        self.template_upload = self._template_object()
        self.launch_role, self.launch_policy = self._launch_role()

        portfolio_spec = definition.portfolio
        self.portfolio = servicecatalog.CfnPortfolio(
            self,
            "Portfolio",
            display_name=portfolio_spec.name,
            description=portfolio_spec.description or None,
            provider_name=portfolio_spec.provider_name,
        )

        self.product = self._product()

        self.association = servicecatalog.CfnPortfolioProductAssociation(
            self,
            "PortfolioProductAssociation",
            portfolio_id=self.portfolio.ref,
            product_id=self.product.ref,
        )

        self.constraint = servicecatalog.CfnLaunchRoleConstraint(
            self,
            "LaunchConstraint",
            portfolio_id=self.portfolio.ref,
            product_id=self.product.ref,
            role_arn=self.launch_role.attr_arn,
            description=f"Launch {definition.product.name} as {definition.launch_role.name}",
        )
        self.constraint.node.add_dependency(self.launch_role, self.launch_policy, self.association)

        self.principal_association = servicecatalog.CfnPortfolioPrincipalAssociation(
            self,
            "PrincipalAssociation",
            portfolio_id=self.portfolio.ref,
            principal_arn=definition.principal_arn,
            principal_type=definition.principal.principal_type,
        )

        CfnOutput(self, "PortfolioId", value=self.portfolio.ref, description="Service Catalog portfolio id")
        CfnOutput(self, "ProductId", value=self.product.ref, description="Service Catalog product id")
        CfnOutput(self, "LaunchRoleArn", value=self.launch_role.attr_arn, description="Launch constraint role ARN")

    # ------------------------------------------------------------------
    def _template_bucket(self) -> s3.Bucket:
        flags = self.definition.bucket.block_public_access
        return s3.Bucket(
            self,
            "TemplateBucket",
            bucket_name=resolve_bucket_name(self.definition.bucket),
            encryption=s3.BucketEncryption.S3_MANAGED,
            versioned=True,
            block_public_access=s3.BlockPublicAccess(
                block_public_acls=flags.block_public_acls,
                block_public_policy=flags.block_public_policy,
                ignore_public_acls=flags.ignore_public_acls,
                restrict_public_buckets=flags.restrict_public_buckets,
            ),
            removal_policy=RemovalPolicy.RETAIN,
        )

    def _template_object(self) -> s3deploy.BucketDeployment:
        key_prefix = posixpath.dirname(self.artifact.object_key)
        return s3deploy.BucketDeployment(
            self,
            "TemplateObject",
            sources=[s3deploy.Source.data(posixpath.basename(self.artifact.object_key), self.artifact.body)],
            destination_bucket=self.bucket,
            destination_key_prefix=f"{key_prefix}/" if key_prefix else None,
            content_type="application/x-yaml",
            metadata={"sha256": self.artifact.sha256},
            prune=False,
        )

    def _launch_role(self) -> tuple[iam.CfnRole, iam.CfnPolicy]:
        spec = self.definition.launch_role
        trust = launch_role_trust_policy(self.definition.account, self.definition.region)
        role = iam.CfnRole(
            self,
            "LaunchRole",
            role_name=spec.name,
            assume_role_policy_document=trust.to_aws(),
            managed_policy_arns=list(spec.managed_policy_arns),
            description="Role assumed by Service Catalog when launching catalog products",
        )
        inline = launch_role_inline_policy(spec.inline_actions, self.bucket.bucket_arn, self.artifact.object_key)
        policy = iam.CfnPolicy(
            self,
            "LaunchRolePolicy",
            policy_name=spec.inline_policy_name,
            policy_document=inline.to_aws(),
            roles=[role.ref],
        )
        return role, policy

    def _product(self) -> servicecatalog.CfnCloudFormationProduct:
        spec = self.definition.product
        url = f"https://{self.bucket.bucket_regional_domain_name}/{self.artifact.object_key}"
        product = servicecatalog.CfnCloudFormationProduct(
            self,
            "Product",
            name=spec.name,
            owner=spec.owner,
            description=spec.description or None,
            product_type=spec.product_type,
            provisioning_artifact_parameters=[
                servicecatalog.CfnCloudFormationProduct.ProvisioningArtifactPropertiesProperty(
                    info={"LoadTemplateFromURL": url},
                    name=spec.artifact.name,
                    description=spec.artifact.description or None,
                    type=spec.artifact.artifact_type,
                )
            ],
        )
        product.add_metadata("TemplateSha256", self.artifact.sha256)
        product.node.add_dependency(self.template_upload)
        return product


__all__ = ["ServiceCatalogStack"]
