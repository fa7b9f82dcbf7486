"""
The walkthrough as ordered, independently runnable steps.

Each step reads what it needs from a shared state dictionary and
stores what it produces there, so any step can be re-run on its own
once the steps it depends on have run, like cells in a notebook.
Running the whole walkthrough always releases the cluster connection,
including when a step fails.

Run from the command line with:

    python -m sparktour.walkthrough            # every step
    python -m sparktour.walkthrough logistic_regression   # with its prerequisites
"""

import logging
import sys

from pathlib import Path

from . import plotting
from .engine import connect, load_sample, read_csv
from .exceptions import WalkthroughError
from .models import (
    linear_regression, generalized_linear_regression,
    logistic_regression, multilayer_perceptron, lda
    )

__all__ = [
    "Step",
    "Walkthrough",
    "default_walkthrough"
    ]

logger = logging.getLogger(__name__)

class Step:
    """
    One narrative step

    Args:
        name (str): unique step name
        func (callable): called with the running Walkthrough; reads
            and writes `tour.state`
        requires (array-like): state keys that must exist beforehand
        produces (array-like): state keys the step sets
        description (str): one line narration
    """
    def __init__(self, name, func, requires=(), produces=(),
                 description=None):
        self.name = name
        self.func = func
        self.requires = tuple(requires)
        self.produces = tuple(produces)
        self.description = description or (func.__doc__ or "").strip()

    def __repr__(self):
        return "<Step {0!r}>".format(self.name)

class Walkthrough:
    """
    Ordered steps sharing one state dictionary. The connection lives
    in `state["connection"]` and is released by `close`.

    Args:
        steps (array-like): Step instances in narrative order
        verbose (bool): print step output
    """
    def __init__(self, steps=(), verbose=True):
        self.steps = []
        self.state = {}
        self.verbose = verbose
        for step in steps:
            self.add_step(step)

    @property
    def step_names(self):
        return [step.name for step in self.steps]

    def add_step(self, step):
        if step.name in self.step_names:
            raise ValueError("Duplicate step name: {0!r}".format(step.name))
        self.steps.append(step)
        return self

    def get_step(self, name):
        for step in self.steps:
            if step.name == name:
                return step
        raise WalkthroughError(
            "Unknown step {0!r}; steps are {1}".format(name, self.step_names))

    def resolve(self, names):
        """
        Add the steps producing every missing prerequisite of `names`,
        transitively

        Args:
            names (array-like): requested step names
        Returns:
            names (list): requested and prerequisite steps in
                narrative order
        """
        needed = set()
        pending = list(names)
        while pending:
            step = self.get_step(pending.pop())
            if step.name in needed:
                continue
            needed.add(step.name)
            for key in step.requires:
                if key in self.state:
                    continue
                producers = [s.name for s in self.steps if key in s.produces]
                if not producers:
                    raise WalkthroughError(
                        "No step produces {0!r} needed by {1!r}".format(
                            key, step.name))
                pending.append(producers[0])
        return [name for name in self.step_names if name in needed]

    def say(self, *args):
        """ Narrate output when verbose """
        if self.verbose:
            print(*args)

    def run_step(self, name):
        """
        Run a single step after checking its prerequisites

        Returns:
            result: whatever the step function returns
        """
        step = self.get_step(name)
        missing = [key for key in step.requires if key not in self.state]
        if missing:
            raise WalkthroughError(
                "Step {0!r} needs {1}; run the steps producing them "
                "first".format(name, missing))
        logger.info("Running step %s", name)
        self.say("-- {0} --".format(name))
        return step.func(self)

    def run(self, steps=None):
        """
        Run the given steps (all steps by default) in narrative
        order, then release the connection.
        """
        names = self.step_names if steps is None else list(steps)
        unknown = [name for name in names if name not in self.step_names]
        if unknown:
            raise WalkthroughError("Unknown steps: {0}".format(unknown))
        ordered = [name for name in self.step_names if name in names]
        try:
            for name in ordered:
                self.run_step(name)
        finally:
            self.close()
        return self.state

    def close(self):
        """ Release the connection if one is open """
        connection = self.state.get("connection")
        if connection is not None and not connection.closed:
            connection.disconnect()

def _connect(tour):
    """ Open a connection to the cluster """
    options = tour.state.get("options", {})
    connection = connect(master=options.get("master"), app_name="sparktour-walkthrough")
    tour.state["connection"] = connection
    tour.say("Connected to Spark {0} at {1}".format(connection.version, connection.master))
    tour.say("Web UI: {0}".format(connection.web_ui_url))

def _ingest(tour):
    """ Copy the sample datasets (and an optional remote CSV) into the engine """
    connection = tour.state["connection"]
    for name in ("mtcars", "iris", "reviews"):
        tour.state[name] = load_sample(connection, name, overwrite=True)
        tour.say("{0}: {1} rows".format(name, tour.state[name].count()))
    remote_csv = tour.state.get("options", {}).get("remote_csv")
    if remote_csv:
        tour.state["remote"] = read_csv(
            connection, remote_csv, name="remote", overwrite=True)
        tour.say("remote: {0} rows".format(tour.state["remote"].count()))

def _wrangle(tour):
    """ Filter, group and aggregate mtcars on the cluster """
    mtcars = tour.state["mtcars"]
    tour.state["by_cyl"] = (
        mtcars
        .filter("hp > 100")
        .mutate(kpl="mpg * 0.425144")
        .group_by("cyl")
        .summarise(mpg=("mean", "mpg"), kpl=("mean", "kpl"), n=("count", "*"))
        .arrange("cyl")
        )
    tour.say(tour.state["by_cyl"].explain(extended=False))

def _materialize(tour):
    """ Pull small results back into pandas """
    tour.state["by_cyl_local"] = tour.state["by_cyl"].collect()
    tour.state["mtcars_local"] = (
        tour.state["mtcars"].select("model", "mpg", "wt", "cyl", "hp").collect())
    tour.say(tour.state["by_cyl_local"])

def _visualize(tour):
    """ Plot the materialized results with matplotlib """
    output_dir = tour.state.get("options", {}).get("output_dir")
    bar_ax = plotting.bar(
        tour.state["by_cyl_local"], "cyl", "mpg",
        title="Mean mpg by cylinders (hp > 100)")
    scatter_ax = plotting.scatter(
        tour.state["mtcars_local"], "wt", "mpg", color="cyl",
        title="Weight against fuel economy")
    figures = [bar_ax, scatter_ax]
    if output_dir:
        paths = [
            plotting.save(bar_ax, Path(output_dir) / "mpg_by_cyl.png"),
            plotting.save(scatter_ax, Path(output_dir) / "wt_vs_mpg.png")
            ]
        tour.state["figures"] = paths
        tour.say("Saved {0}".format(", ".join(str(p) for p in paths)))
    else:
        tour.state["figures"] = figures

def _split(tour):
    """ Partition iris into training and test sets """
    partitions = tour.state["iris"].random_split(
        {"training": 0.8, "test": 0.2}, seed=1099)
    tour.state["iris_training"] = partitions["training"]
    tour.state["iris_test"] = partitions["test"]
    tour.say("training: {0} rows, test: {1} rows".format(
        partitions["training"].count(), partitions["test"].count()))

def _linear_model(tour):
    """ mpg ~ wt + cyl with ordinary least squares """
    fit = linear_regression(tour.state["mtcars"], "mpg ~ wt + cyl")
    tour.state["lm"] = fit
    tour.say(fit.summary())
    tour.say(fit.metrics())

def _glm(tour):
    """ Transmission type from weight and horsepower with a binomial GLM """
    fit = generalized_linear_regression(
        tour.state["mtcars"], "am ~ wt + hp", family="binomial")
    tour.state["glm"] = fit
    tour.say(fit.summary())
    tour.say(fit.metrics())

def _logistic(tour):
    """ Multinomial logistic regression of iris species """
    fit = logistic_regression(tour.state["iris_training"], "species ~ .")
    tour.state["logistic"] = fit
    tour.say(fit.summary())
    tour.say(fit.evaluate(tour.state["iris_test"]))

def _neural_network(tour):
    """ Feedforward classifier of iris species """
    fit = multilayer_perceptron(
        tour.state["iris_training"], "species ~ .",
        hidden_layers=(5, 4), max_iter=200, seed=1234)
    tour.state["mlp"] = fit
    tour.say(fit.summary())
    tour.say(fit.evaluate(tour.state["iris_test"], metrics=["accuracy"]))
    tour.say(
        fit.predict(tour.state["iris_test"])
        .select("species", "predicted_label").head(5))

def _topics(tour):
    """ Three LDA topics over the review corpus """
    fit = lda(tour.state["reviews"], "text", k=3, max_iter=30, seed=42)
    tour.state["lda"] = fit
    tour.say(fit.topics(n_terms=4))

def _disconnect(tour):
    """ Release the cluster connection """
    tour.close()
    tour.say("Disconnected")

def default_walkthrough(master=None, output_dir=None, remote_csv=None,
                        verbose=True):
    """
    The standard narrative: connect, ingest, wrangle, materialize,
    visualize, model and disconnect.

    Args:
        master (str): Spark master URL; environment or default if None
        output_dir (str or Path): where to save figures; kept in
            memory if None
        remote_csv (str): optional http(s) CSV to ingest as 'remote'
        verbose (bool): print step output
    Returns:
        walkthrough (Walkthrough)
    """
    tour = Walkthrough([
        Step("connect", _connect, produces=["connection"]),
        Step("ingest", _ingest, requires=["connection"],
             produces=["mtcars", "iris", "reviews"]),
        Step("wrangle", _wrangle, requires=["mtcars"], produces=["by_cyl"]),
        Step("materialize", _materialize, requires=["by_cyl", "mtcars"],
             produces=["by_cyl_local", "mtcars_local"]),
        Step("visualize", _visualize, requires=["by_cyl_local", "mtcars_local"],
             produces=["figures"]),
        Step("split", _split, requires=["iris"],
             produces=["iris_training", "iris_test"]),
        Step("linear_regression", _linear_model, requires=["mtcars"],
             produces=["lm"]),
        Step("glm", _glm, requires=["mtcars"], produces=["glm"]),
        Step("logistic_regression", _logistic,
             requires=["iris_training", "iris_test"], produces=["logistic"]),
        Step("neural_network", _neural_network,
             requires=["iris_training", "iris_test"], produces=["mlp"]),
        Step("topics", _topics, requires=["reviews"], produces=["lda"]),
        Step("disconnect", _disconnect, requires=["connection"])
        ], verbose=verbose)
    tour.state["options"] = {
        "master": master,
        "output_dir": output_dir,
        "remote_csv": remote_csv
    }
    return tour

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    tour = default_walkthrough(output_dir="figures")
    requested = sys.argv[1:]
    tour.run(tour.resolve(requested) if requested else None)
