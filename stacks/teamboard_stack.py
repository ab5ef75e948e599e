import os
from pathlib import Path

from aws_cdk import (
    CfnOutput,
    Duration,
    RemovalPolicy,
    Stack,
    aws_apigateway as apigw,
    aws_dynamodb as ddb,
    aws_lambda as _lambda,
    aws_logs as logs,
)
from constructs import Construct

LAMBDA_ASSET_DIR = str(Path(__file__).resolve().parents[1] / "lambda")


class TeamboardStack(Stack):
    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        stage_name = os.getenv("STAGE", "prod")
        data_retention_mode = os.getenv("DATA_RETENTION_MODE", "destroy").strip().lower()
        if data_retention_mode not in {"destroy", "retain"}:
            raise ValueError(
                "DATA_RETENTION_MODE must be 'destroy' or 'retain' (case-insensitive)"
            )
        # Dev-first default: delete stateful resources on teardown.
        # For production deployments, set DATA_RETENTION_MODE=retain.
        stateful_removal_policy = (
            RemovalPolicy.DESTROY
            if data_retention_mode == "destroy"
            else RemovalPolicy.RETAIN
        )
        schema_version = "2024-06-01"
        name_prefix = f"{construct_id}-{stage_name}"

        def _table(logical_id: str) -> ddb.Table:
            return ddb.Table(
                self,
                logical_id,
                partition_key=ddb.Attribute(name="id", type=ddb.AttributeType.STRING),
                billing_mode=ddb.BillingMode.PAY_PER_REQUEST,
                point_in_time_recovery=True,
                removal_policy=stateful_removal_policy,
            )

        tasks_table = _table("TasksTable")
        notices_table = _table("NoticesTable")
        comments_table = _table("CommentsTable")
        users_table = _table("UsersTable")

        def _handler(logical_id: str, module: str, env: dict[str, str]) -> _lambda.Function:
            environment = {"TEAMBOARD_SCHEMA_VERSION": schema_version}
            environment.update(env)
            return _lambda.Function(
                self,
                logical_id,
                runtime=_lambda.Runtime.PYTHON_3_12,
                handler=f"teamboard_api.{module}.handler",
                code=_lambda.Code.from_asset(LAMBDA_ASSET_DIR),
                timeout=Duration.seconds(20),
                environment=environment,
            )

        database_fn = _handler(
            "DatabaseHandler", "database_handler", {"TEAMBOARD_TASKS_TABLE": tasks_table.table_name}
        )
        tasks_table.grant_read_data(database_fn)

        tasks_fn = _handler("TasksHandler", "tasks_handler", {"TEAMBOARD_TASKS_TABLE": tasks_table.table_name})
        tasks_table.grant_read_write_data(tasks_fn)

        notices_fn = _handler(
            "NoticesHandler", "notices_handler", {"TEAMBOARD_NOTICES_TABLE": notices_table.table_name}
        )
        notices_table.grant_read_write_data(notices_fn)

        comments_fn = _handler(
            "CommentsHandler", "comments_handler", {"TEAMBOARD_COMMENTS_TABLE": comments_table.table_name}
        )
        comments_table.grant_read_write_data(comments_fn)

        users_fn = _handler("UsersHandler", "users_handler", {"TEAMBOARD_USERS_TABLE": users_table.table_name})
        users_table.grant_read_write_data(users_fn)

        access_log_group = logs.LogGroup(
            self,
            "ApiAccessLogGroup",
            retention=logs.RetentionDays.ONE_WEEK,
            removal_policy=stateful_removal_policy,
        )

        rest_api = apigw.RestApi(
            self,
            "TeamboardApi",
            rest_api_name=f"{name_prefix}-api",
            deploy_options=apigw.StageOptions(
                stage_name=stage_name,
                access_log_destination=apigw.LogGroupLogDestination(access_log_group),
                access_log_format=apigw.AccessLogFormat.json_with_standard_fields(
                    caller=True,
                    http_method=True,
                    ip=True,
                    protocol=True,
                    request_time=True,
                    resource_path=True,
                    response_length=True,
                    status=True,
                    user=True,
                ),
            ),
            default_cors_preflight_options=apigw.CorsOptions(
                allow_origins=apigw.Cors.ALL_ORIGINS,
                allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
                allow_headers=["Content-Type"],
            ),
            cloud_watch_role=True,
        )

        database_integration = apigw.LambdaIntegration(database_fn)
        tasks_integration = apigw.LambdaIntegration(tasks_fn)
        notices_integration = apigw.LambdaIntegration(notices_fn)
        comments_integration = apigw.LambdaIntegration(comments_fn)
        users_integration = apigw.LambdaIntegration(users_fn)

        # Same routes at the root and under /api.
        for root in (rest_api.root, rest_api.root.add_resource("api")):
            database = root.add_resource("database")
            database.add_method("GET", database_integration)

            tasks = root.add_resource("tasks")
            tasks.add_method("POST", tasks_integration)
            task = tasks.add_resource("{id}")
            task.add_method("PATCH", tasks_integration)
            task.add_method("DELETE", tasks_integration)

            notices = root.add_resource("notices")
            notices.add_method("GET", notices_integration)
            notices.add_method("POST", notices_integration)
            notice = notices.add_resource("{id}")
            notice.add_method("GET", notices_integration)
            notice.add_method("PATCH", notices_integration)
            notice.add_method("DELETE", notices_integration)

            comments = root.add_resource("comments")
            comments.add_method("POST", comments_integration)
            comment = comments.add_resource("{id}")
            comment.add_method("GET", comments_integration)
            comment.add_method("DELETE", comments_integration)

            users = root.add_resource("users")
            users.add_method("GET", users_integration)
            users.add_resource("register").add_method("POST", users_integration)
            users.add_resource("{id}").add_resource("status").add_method("PATCH", users_integration)
            root.add_resource("register").add_method("POST", users_integration)

        CfnOutput(
            self,
            "ApiUrl",
            value=f"{rest_api.url}api",
            description="Base URL for the teamboard client (TEAMBOARD_API_BASE_URL).",
        )
        CfnOutput(self, "TasksTableName", value=tasks_table.table_name)
        CfnOutput(self, "NoticesTableName", value=notices_table.table_name)
        CfnOutput(self, "CommentsTableName", value=comments_table.table_name)
        CfnOutput(self, "UsersTableName", value=users_table.table_name)
