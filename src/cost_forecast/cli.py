"""Click CLI: ``cost-forecast`` command group."""

from __future__ import annotations

from datetime import date

import click
from loguru import logger

from cost_forecast.config import load_config
from cost_forecast.exit_codes import ExitCode, exit_code_from_result
from cost_forecast.logging import (
    add_log_file,
    bind_run_context,
    close_log_file,
    new_run_id,
    setup_logging,
)


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------

@click.group(invoke_without_command=True)
@click.version_option(package_name="cost-forecast-collector", prog_name="cost-forecast")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True),
              help="Path to YAML config.")
@click.option("--log-level", default="INFO",
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
@click.option("--log-format", default="text",
              type=click.Choice(["text", "json"]),
              help="Log output format.")
@click.option("--run-id", default=None, help="Override auto-generated run ID.")
@click.option("--show-config", is_flag=True, help="Print resolved config as YAML and exit.")
@click.pass_context
def cost_forecast(ctx: click.Context, config_path, log_level, log_format, run_id, show_config):
    """AWS Cost Explorer forecast collector."""
    ctx.ensure_object(dict)

    # Logging with run context
    run_id = run_id or new_run_id()
    ctx.obj["run_id"] = run_id
    bind_run_context(run_id)
    setup_logging(level=log_level, fmt=log_format)
    ctx.obj["log_level"] = log_level

    ctx.obj["cfg"] = load_config(config_path)

    if show_config:
        import dataclasses
        import yaml as _yaml
        click.echo(_yaml.dump(dataclasses.asdict(ctx.obj["cfg"]), default_flow_style=False))
        ctx.exit(ExitCode.SUCCESS)
        return

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# options
# ---------------------------------------------------------------------------

@cost_forecast.command()
def options():
    """List available metrics and dimensions."""
    from cost_forecast.catalog import (
        DIMENSION_DESCRIPTIONS,
        DIMENSIONS,
        METRIC_DESCRIPTIONS,
        METRICS,
        RECOMMENDED_DIMENSIONS,
    )

    click.echo("Metrics:")
    for m in METRICS:
        desc = METRIC_DESCRIPTIONS.get(m)
        click.echo(f"  {m}" + (f" - {desc}" if desc else ""))
    click.echo("\nDimensions:")
    for d in DIMENSIONS:
        desc = DIMENSION_DESCRIPTIONS.get(d)
        click.echo(f"  {d}" + (f" - {desc}" if desc else ""))
    click.echo(f"\nRecommended dimensions: {', '.join(RECOMMENDED_DIMENSIONS)}")
    click.echo("Use 'all' or 'recommended' with --dimension, 'all' with --metric.")


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------

@cost_forecast.command()
@click.option("--region", default=None, envvar="AWS_DEFAULT_REGION")
@click.option("--profile", default=None, envvar="AWS_PROFILE")
@click.pass_context
def check(ctx, region, profile):
    """Check AWS credentials and Cost Explorer access."""
    from cost_forecast.errors import RemoteAPIError
    from cost_forecast.models import TimeRange
    from cost_forecast.steps.collect import build_client

    cfg = ctx.obj["cfg"]
    cfg.aws.region = region or cfg.aws.region
    cfg.aws.profile = profile or cfg.aws.profile
    try:
        client = build_client(cfg)
        ident = client.caller_identity()
    except RemoteAPIError as e:
        logger.error(f"AWS credentials not configured: {e}")
        ctx.exit(ExitCode.MISSING_DEPENDENCY)
        return
    logger.info(f"Account ID: {ident['account_id']}")
    logger.info(f"User/Role: {ident['arn']}")

    try:
        client.probe_access(TimeRange.last_days(7))
    except RemoteAPIError as e:
        logger.warning(f"Cost Explorer permissions may be limited: {e}")
        ctx.exit(ExitCode.MISSING_DEPENDENCY)
        return
    logger.success("Cost Explorer access confirmed")
    ctx.exit(ExitCode.SUCCESS)


# ---------------------------------------------------------------------------
# fetch
# ---------------------------------------------------------------------------

def _resolve_time_range(days, start_date, end_date):
    from cost_forecast.models import TimeRange

    today = date.today()
    if end_date is None:
        if start_date is not None:
            raise click.BadParameter("--start-date requires --end-date", param_hint="--start-date")
        return TimeRange.next_days(days, today=today)
    start = start_date.date() if start_date else today
    end = end_date.date()
    if start < today:
        raise click.BadParameter("Start date cannot be in the past", param_hint="--start-date")
    if end < today:
        raise click.BadParameter("End date must be in the future", param_hint="--end-date")
    try:
        return TimeRange(start, end)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--end-date") from None


@cost_forecast.command()
@click.option("-d", "--dimension", "dimensions", multiple=True,
              help="Dimension to break down by (repeatable; 'all' or 'recommended').")
@click.option("-m", "--metric", "metrics", multiple=True,
              help="Metric to forecast (repeatable; 'all').")
@click.option("--granularity", default=None,
              type=click.Choice(["DAILY", "MONTHLY"], case_sensitive=False))
@click.option("--days", type=click.Choice(["30", "90", "180", "365"]), default=None,
              help="Forecast horizon starting today.")
@click.option("--start-date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--end-date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None)
@click.option("--max-parallel", type=int, default=None, help="Concurrent forecast requests.")
@click.option("--max-retries", type=int, default=None, help="Extra attempts per failed request.")
@click.option("--output-dir", default=None, help="Base directory for run output.")
@click.option("--bucket", default=None, envvar="FORECAST_BUCKET",
              help="S3 bucket to upload results to (skip upload if omitted).")
@click.option("--prefix", default=None, help="Key prefix inside the bucket.")
@click.option("--region", default=None, envvar="AWS_DEFAULT_REGION")
@click.option("--profile", default=None, envvar="AWS_PROFILE")
@click.option("--no-manifest", is_flag=True, help="Skip the QuickSight manifest.")
@click.option("--dry-run", is_flag=True, help="Validate configuration without calling the API.")
@click.option("--yes", is_flag=True, help="Skip interactive approval prompt.")
@click.pass_context
def fetch(ctx, dimensions, metrics, granularity, days, start_date, end_date,
          max_parallel, max_retries, output_dir, bucket, prefix, region, profile,
          no_manifest, dry_run, yes):
    """Collect cost forecasts for every dimension value and metric."""
    from cost_forecast.catalog import parse_granularity, select_dimensions, select_metrics
    from cost_forecast.errors import (
        AggregationError,
        ConfigurationError,
        NoJobsError,
        RemoteAPIError,
        UploadError,
    )
    from cost_forecast.models import CollectionRequest
    from cost_forecast.steps.collect import RunPaths, run_forecast_collection, validate_request
    from cost_forecast.tracking import ProgressLogger

    cfg = ctx.obj["cfg"]
    sel = cfg.selection

    # CLI flags override config
    if max_parallel is not None:
        cfg.collection.max_parallel = max_parallel
    if max_retries is not None:
        cfg.collection.max_retries = max_retries
    cfg.output.dir = output_dir or cfg.output.dir
    cfg.output.bucket = bucket or cfg.output.bucket
    cfg.output.prefix = prefix if prefix is not None else cfg.output.prefix
    cfg.output.manifest = cfg.output.manifest and not no_manifest
    cfg.aws.region = region or cfg.aws.region
    cfg.aws.profile = profile or cfg.aws.profile

    try:
        request = CollectionRequest(
            time_range=_resolve_time_range(int(days or sel.days), start_date, end_date),
            granularity=parse_granularity(granularity or sel.granularity),
            dimensions=select_dimensions(dimensions or sel.dimensions),
            metrics=select_metrics(metrics or sel.metrics),
        )
        validate_request(request)
    except ConfigurationError as e:
        logger.error(str(e))
        ctx.exit(ExitCode.BAD_INPUT)
        return

    logger.info(f"Time period: {request.time_range} ({request.time_range.days} days)")
    logger.info(f"Granularity: {request.granularity.value}")
    logger.info(f"Selected {len(request.metrics)} metrics: {' '.join(request.metrics)}")
    logger.info(f"Selected {len(request.dimensions)} dimensions: {' '.join(request.dimensions)}")

    if dry_run:
        click.echo(f"Metrics: {len(request.metrics)}, Dimensions: {len(request.dimensions)}")
        click.echo(f"Time period: {request.time_range}, Granularity: {request.granularity.value}")
        click.echo(f"Max parallel: {cfg.collection.max_parallel}, "
                   f"Max retries: {cfg.collection.max_retries}")
        if cfg.output.bucket:
            click.echo(f"Upload to: s3://{cfg.output.bucket}/{cfg.output.prefix}")
        logger.info("Dry run completed: configuration validated")
        ctx.exit(ExitCode.SUCCESS)
        return

    if not yes:
        click.confirm("Proceed with forecast collection?", abort=True)

    paths = RunPaths.create(cfg.output.dir)
    add_log_file(paths.log_path)
    logger.info(f"Output directory: {paths.output_dir}")

    try:
        try:
            result = run_forecast_collection(
                request, cfg, paths=paths, on_progress=ProgressLogger(),
            )
        except NoJobsError as e:
            logger.error(str(e))
            ctx.exit(ExitCode.NO_WORK)
            return
        except ConfigurationError as e:
            logger.error(str(e))
            ctx.exit(ExitCode.BAD_INPUT)
            return
        except RemoteAPIError as e:
            logger.error(f"AWS client unavailable: {e}")
            ctx.exit(ExitCode.MISSING_DEPENDENCY)
            return
        except AggregationError as e:
            logger.error(f"Collection failed entirely: {e}")
            ctx.exit(ExitCode.TOTAL_FAILURE)
            return

        for dim, reason in result.skipped_dimensions.items():
            logger.warning(f"Dimension {dim} skipped: {reason}")

        if result.cancelled:
            logger.warning(
                f"Cancelled after {result.succeeded_jobs} of {result.total_jobs} jobs succeeded"
            )
        elif result.failed_jobs:
            logger.warning(
                f"Completed with {result.failed_jobs} failed jobs out of {result.total_jobs}"
            )
        else:
            logger.success(f"Completed all {result.total_jobs} jobs")

        click.echo(f"Records generated: {result.total_rows}")
        click.echo(f"CSV data: {result.output_path}")
        click.echo(f"Log file: {paths.log_path}")

        if result.cancelled:
            logger.warning("Skipping S3 upload for a cancelled run")
        elif cfg.output.bucket:
            from cost_forecast.steps.publish import publish_results, s3_dest

            try:
                uris = publish_results(
                    result.output_path, cfg,
                    dest=s3_dest(cfg.output.bucket, cfg.output.prefix),
                    log_path=paths.log_path,
                )
                click.echo(f"S3 location: {uris['csv']}")
            except UploadError as e:
                logger.error(f"Upload failed; local data is intact: {e}")
        else:
            logger.info("Skipping S3 upload")

        ctx.exit(exit_code_from_result(result))
    finally:
        close_log_file()
