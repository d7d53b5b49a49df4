#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Command-line interface for ChromWeaver.

This module provides the main CLI entry point and all subcommands for
the ChromWeaver chromatin accessibility scoring pipeline.
"""

import logging
import sys
from pathlib import Path

import click
import yaml

from .version import __version__
from .config.schema import (
    ConfigValidationError,
    apply_overrides,
    load_config,
    save_config_template,
    validate_config,
)


def _setup_logging(verbose: bool, quiet: bool):
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _resolve_config(ctx, overrides):
    """Load the --config file (or defaults), apply CLI overrides, validate."""
    config_path = ctx.obj.get('CONFIG') if ctx.obj else None
    config = apply_overrides(load_config(config_path), overrides)
    errors = validate_config(config)
    if errors:
        raise ConfigValidationError("; ".join(errors))
    return config


def _fail(message: str, error: Exception):
    click.echo(f"✗ {message}: {error}", err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.option('--config', '-c', 'config_file', type=click.Path(exists=True),
              help='Configuration file (YAML)')
@click.pass_context
def main(ctx, verbose, quiet, config_file):
    """
    ChromWeaver: chromatin accessibility with nanopore long reads

    Trains per-kmer signal models from positive and negative controls,
    ranks kmers, scores every position of aligned reads, and calibrates
    scores into single-molecule modification calls.
    """
    ctx.ensure_object(dict)
    ctx.obj['VERBOSE'] = verbose
    ctx.obj['QUIET'] = quiet
    ctx.obj['CONFIG'] = Path(config_file) if config_file else None
    _setup_logging(verbose, quiet)


# ============================================================================
# Configuration Management Commands
# ============================================================================

@main.group()
def config():
    """Configuration management commands."""
    pass


@config.command('init')
@click.option('--output', '-o', type=click.Path(), default='chromweaver_config.yaml',
              help='Output configuration file path')
@click.option('--template', '-t', type=click.Choice(['default', 'gpc', 'cpg']),
              default='default', help='Configuration template type')
def config_init(output, template):
    """Generate a template configuration file with all available parameters."""
    click.echo(f"Generating {template} configuration template: {output}")
    try:
        save_config_template(Path(output), template=template)
        click.echo(f"✓ Configuration file created: {output}")
    except OSError as e:
        _fail("Error creating configuration", e)


@config.command('validate')
@click.argument('config_file', type=click.Path(exists=True))
def config_validate(config_file):
    """Validate a configuration file."""
    click.echo(f"Validating configuration file: {config_file}")
    try:
        cfg = load_config(Path(config_file))
    except ConfigValidationError as e:
        _fail("Error validating configuration", e)

    errors = validate_config(cfg)
    if errors:
        click.echo("\n✗ Configuration validation failed:")
        for error in errors:
            click.echo(f"  • {error}", err=True)
        sys.exit(1)
    click.echo("✓ Configuration is valid")


@config.command('show')
@click.argument('config_file', type=click.Path(exists=True))
def config_show(config_file):
    """Display configuration settings merged with defaults."""
    try:
        cfg = load_config(Path(config_file))
    except ConfigValidationError as e:
        _fail("Error reading configuration", e)
    click.echo(yaml.dump(cfg, default_flow_style=False, sort_keys=False))


# ============================================================================
# Pipeline Commands
# ============================================================================

@main.command()
@click.option('--input', '-i', 'input_path', required=True, type=click.Path(exists=True),
              help='Control reads (JSONL, optionally .gz)')
@click.option('--genome', '-g', required=True, type=click.Path(exists=True),
              help='Genome FASTA (indexed with samtools faidx)')
@click.option('--output', '-o', required=True, type=click.Path(),
              help='Output model file')
@click.option('--samples', type=int, default=None,
              help='Maximum observations per kmer [default: 50000]')
@click.option('--single/--paired', default=None,
              help='Fit one or two mixture components [default: paired]')
@click.option('--dbscan/--no-dbscan', default=None,
              help='Filter outliers with DBSCAN before fitting')
@click.option('--motif', '-m', 'motifs', multiple=True,
              help='Only train kmers starting with motif, e.g. 2:GC (repeatable)')
@click.option('--db-path', type=click.Path(), default=None,
              help='Scratch sample database [default: temporary file]')
@click.option('--seed', type=int, default=None, help='Random state for mixture fitting')
@click.pass_context
def train(ctx, input_path, genome, output, samples, single, dbscan, motifs, db_path, seed):
    """
    Train per-kmer signal mixtures and skip rates from a control.

    Examples:
        chromweaver train -i pos_control.jsonl -g sacCer3.fa -o pos.model
    """
    from .io.genome import open_genome
    from .training.model_trainer import TrainOptions, train_file
    from .utils.motif import all_bases, parse_motifs

    try:
        cfg = _resolve_config(ctx, {
            'training.n_samples': samples,
            'training.single': single,
            'training.dbscan': dbscan,
            'training.motifs': list(motifs) or None,
            'training.db_path': db_path,
            'training.seed': seed,
        })
        t = cfg['training']
        options = TrainOptions(
            n_samples=t['n_samples'],
            single=t['single'],
            dbscan=t['dbscan'],
            dbscan_eps=t['dbscan_eps'],
            dbscan_min_samples=t['dbscan_min_samples'],
            n_init=t['n_init'],
            tol=t['tol'],
            seed=t['seed'],
            motifs=parse_motifs(t['motifs']) if t['motifs'] else all_bases(),
            db_path=Path(t['db_path']) if t['db_path'] else None,
            use_raw_samples=t['use_raw_samples'],
        )
        with open_genome(genome, cfg['io']['in_memory_genome']) as ref:
            model = train_file(input_path, ref, options, cfg['io']['batch_size'])
        model.save(output)
    except Exception as e:
        _fail("Training failed", e)

    click.echo(f"✓ Trained {len(model.gmms)} kmer models: {output}")


@main.command()
@click.option('--pos-ctrl', required=True, type=click.Path(exists=True),
              help='Positive control model from chromweaver train')
@click.option('--neg-ctrl', required=True, type=click.Path(exists=True),
              help='Negative control model from chromweaver train')
@click.option('--output', '-o', required=True, type=click.Path(),
              help='Output rank file')
@click.option('--seed', type=int, default=None,
              help='Ranks are estimated by sampling; seed keeps runs consistent [default: 2456]')
@click.option('--samples', type=int, default=None,
              help='Draws per mixture; more is slower but more accurate [default: 10000]')
@click.pass_context
def rank(ctx, pos_ctrl, neg_ctrl, output, seed, samples):
    """Rank each kmer by KL divergence between the control models."""
    from .scoring.kmer_ranker import rank as rank_kmers, save_ranks
    from .training.mixture import Model

    try:
        cfg = _resolve_config(ctx, {'ranking.seed': seed, 'ranking.n_samples': samples})
        ranks = rank_kmers(
            Model.load(pos_ctrl),
            Model.load(neg_ctrl),
            seed=cfg['ranking']['seed'],
            n_samples=cfg['ranking']['n_samples'],
        )
        save_ranks(output, ranks)
    except Exception as e:
        _fail("Ranking failed", e)

    click.echo(f"✓ Ranked {len(ranks)} kmers: {output}")


@main.command()
@click.option('--input', '-i', 'input_path', required=True, type=click.Path(exists=True),
              help='Reads to score (JSONL, optionally .gz)')
@click.option('--output', '-o', required=True, type=click.Path(),
              help='Output scored reads (JSONL)')
@click.option('--pos-ctrl', required=True, type=click.Path(exists=True),
              help='Positive control model from chromweaver train')
@click.option('--neg-ctrl', required=True, type=click.Path(exists=True),
              help='Negative control model from chromweaver train')
@click.option('--ranks', '-r', required=True, type=click.Path(exists=True),
              help='Rank file from chromweaver rank')
@click.option('--genome', '-g', required=True, type=click.Path(exists=True),
              help='Genome FASTA (indexed with samtools faidx)')
@click.option('--cutoff', type=float, default=None,
              help='Withhold signal scores when both log densities are below -cutoff [default: 10]')
@click.option('--motif', '-m', 'motifs', multiple=True,
              help='Only score positions whose kmer starts with motif (repeatable)')
@click.option('--fusion', type=click.Choice(['max', 'signal_first']), default=None,
              help='How signal and skip scores combine [default: max]')
@click.pass_context
def score(ctx, input_path, output, pos_ctrl, neg_ctrl, ranks, genome, cutoff, motifs, fusion):
    """Score each position of each read against the control models."""
    from .io.genome import open_genome
    from .scoring.kmer_ranker import load_ranks
    from .scoring.position_scorer import ScoringOptions, score_file
    from .training.mixture import Model
    from .utils.motif import parse_motifs

    try:
        cfg = _resolve_config(ctx, {
            'scoring.cutoff': cutoff,
            'scoring.motifs': list(motifs) or None,
            'scoring.fusion': fusion,
        })
        s = cfg['scoring']
        options = ScoringOptions(
            cutoff=s['cutoff'],
            motifs=parse_motifs(s['motifs']) if s['motifs'] else None,
            fusion=s['fusion'],
            select_components=s['select_components'],
        )
        pos_model = Model.load(pos_ctrl)
        neg_model = Model.load(neg_ctrl)
        kmer_ranks = load_ranks(ranks)
        with open_genome(genome, cfg['io']['in_memory_genome']) as ref:
            n_reads = score_file(input_path, output, pos_model, neg_model, kmer_ranks,
                                 ref, options, cfg['io']['batch_size'])
    except Exception as e:
        _fail("Scoring failed", e)

    click.echo(f"✓ Scored {n_reads} reads: {output}")


@main.command('model-scores')
@click.option('--input', '-i', 'input_path', required=True, type=click.Path(exists=True),
              help='Scored control reads from chromweaver score')
@click.option('--output', '-o', required=True, type=click.Path(),
              help='Output score density file')
@click.option('--bins', type=int, default=None, help='Density grid points [default: 1000]')
@click.option('--max-scores', type=int, default=None,
              help='Subsample to at most this many scores [default: 1000000]')
@click.pass_context
def model_scores(ctx, input_path, output, bins, max_scores):
    """Fit a kernel density estimate of a scored control's scores."""
    from .scoring.density import model_scores as fit_cohort

    try:
        cfg = _resolve_config(ctx, {
            'calibration.bins': bins,
            'calibration.max_scores': max_scores,
        })
        c = cfg['calibration']
        density = fit_cohort(input_path, c['bins'], c['max_scores'], c['seed'])
        density.save(output)
    except Exception as e:
        _fail("Score density failed", e)

    click.echo(f"✓ Score density from {density.n_scores:,} scores: {output}")


@main.command()
@click.option('--input', '-i', 'input_path', required=True, type=click.Path(exists=True),
              help='Scored reads from chromweaver score')
@click.option('--pos-ctrl-scores', required=True, type=click.Path(exists=True),
              help='Positive control density from chromweaver model-scores')
@click.option('--neg-ctrl-scores', required=True, type=click.Path(exists=True),
              help='Negative control density from chromweaver model-scores')
@click.option('--output', '-o', required=True, type=click.Path(),
              help='Output BED12 file')
@click.option('--threshold', type=float, default=None,
              help='Minimum calibrated probability to call a position [default: 0.5]')
@click.option('--track-name', type=str, default=None, help='BED track name')
@click.pass_context
def sma(ctx, input_path, pos_ctrl_scores, neg_ctrl_scores, output, threshold, track_name):
    """Single-molecule analysis: calibrated per-read calls as BED12."""
    from .scoring.density import ScoreDensity
    from .scoring.sma import SmaOptions, run_sma

    try:
        cfg = _resolve_config(ctx, {
            'sma.threshold': threshold,
            'sma.track_name': track_name,
        })
        options = SmaOptions(
            threshold=cfg['sma']['threshold'],
            track_name=cfg['sma']['track_name'],
        )
        n_reads = run_sma(
            input_path,
            ScoreDensity.load(pos_ctrl_scores),
            ScoreDensity.load(neg_ctrl_scores),
            output,
            options,
        )
    except Exception as e:
        Path(output).unlink(missing_ok=True)
        _fail("Single-molecule analysis failed", e)

    click.echo(f"✓ Wrote calls for {n_reads} reads: {output}")


# ============================================================================
# Utility Commands
# ============================================================================

@main.command()
def version():
    """Show version information."""
    click.echo(f"ChromWeaver v{__version__}")
    click.echo("\nDependencies:")

    import numpy
    import scipy
    import sklearn
    import pysam
    import Bio

    click.echo(f"  NumPy: {numpy.__version__}")
    click.echo(f"  SciPy: {scipy.__version__}")
    click.echo(f"  scikit-learn: {sklearn.__version__}")
    click.echo(f"  pysam: {pysam.__version__}")
    click.echo(f"  BioPython: {Bio.__version__}")


if __name__ == '__main__':
    sys.exit(main())
