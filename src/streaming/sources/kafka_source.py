"""
Kafka source for Spark Structured Streaming.

Reads the live movement topic and parses message values into the movement
columns, keeping the Kafka coordinates for correlation ids.
"""

from pyspark.sql import DataFrame, SparkSession
from pyspark.sql.functions import col, from_json
from pyspark.sql.types import ArrayType, StringType, StructField, StructType

from src.config import KafkaSettings
from src.observability.logger import get_logger

logger = get_logger(__name__)

# External feed contract (camelCase); timestamps stay strings and are parsed by RawMovement
MOVEMENT_VALUE_SCHEMA = StructType([
    StructField("destination", StringType(), True),
    StructField("servicingNodes", ArrayType(StringType()), True),
    StructField("sourceLocation", StringType(), True),
    StructField("destinationLocation", StringType(), True),
    StructField("status", StringType(), True),
    StructField("timestamp", StringType(), True),
])

KAFKA_METADATA_COLUMNS = ["topic", "partition", "offset"]

VALID_STARTING_OFFSETS = ("earliest", "latest")


class KafkaSource:
    """
    Spark Structured Streaming source for one movement topic.

    Offsets are tracked by the query checkpoint, not by the consumer group,
    so a stopped query restarted on the same checkpoint resumes where it
    left off.
    """

    def __init__(
        self,
        spark: SparkSession,
        topic: str,
        bootstrap_servers: str,
        group_id: str | None = None,
        starting_offsets: str = "latest",
        value_schema: StructType = MOVEMENT_VALUE_SCHEMA,
    ):
        """
        Initialize Kafka stream source.

        Args:
            spark: Active Spark session
            topic: Kafka topic name
            bootstrap_servers: Comma-separated list of Kafka brokers
            group_id: Consumer group ID (optional)
            starting_offsets: Where a fresh checkpoint starts reading (earliest, latest or JSON spec)
            value_schema: Schema of the JSON message value

        Raises:
            ValueError: If the configuration is invalid
        """
        if not bootstrap_servers:
            raise ValueError("Kafka bootstrap servers must be specified")
        if not topic:
            raise ValueError("Kafka topic must be specified")
        if starting_offsets not in VALID_STARTING_OFFSETS and not starting_offsets.startswith("{"):
            raise ValueError(
                f"Invalid starting_offsets: {starting_offsets}. "
                f"Must be 'earliest', 'latest', or JSON offset spec"
            )

        self.spark = spark
        self.topic = topic
        self.bootstrap_servers = bootstrap_servers
        self.group_id = group_id
        self.starting_offsets = starting_offsets
        self.value_schema = value_schema

        logger.info(f"Initialized KafkaSource (topic: {topic}, servers: {bootstrap_servers})")

    @classmethod
    def from_settings(cls, spark: SparkSession, topic: str, settings: KafkaSettings) -> "KafkaSource":
        return cls(
            spark,
            topic=topic,
            bootstrap_servers=settings.bootstrap_servers,
            group_id=settings.group_id,
            starting_offsets=settings.starting_offsets,
        )

    def read_stream(self) -> DataFrame:
        """
        Create the streaming DataFrame.

        Returns:
            Streaming DataFrame with one column per movement field plus
            topic, partition and offset
        """
        logger.info(f"Starting Kafka stream from topic '{self.topic}' (offsets: {self.starting_offsets})")

        stream_reader = (
            self.spark.readStream
            .format("kafka")
            .option("kafka.bootstrap.servers", self.bootstrap_servers)
            .option("subscribe", self.topic)
            .option("startingOffsets", self.starting_offsets)
            .option("failOnDataLoss", "false")
        )

        if self.group_id:
            stream_reader = stream_reader.option("kafka.group.id", self.group_id)

        kafka_df = stream_reader.load()

        parsed_df = kafka_df.withColumn(
            "parsed_value",
            from_json(col("value").cast("string"), self.value_schema)
        )

        columns = [col(f"parsed_value.{field.name}").alias(field.name) for field in self.value_schema.fields]
        columns += [col(name) for name in KAFKA_METADATA_COLUMNS]

        return parsed_df.select(*columns)
